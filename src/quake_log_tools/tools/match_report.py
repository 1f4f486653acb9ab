"""
Match Report Exporter

Exports parsed match statistics to an Excel workbook and draws the global
kill ranking as a bar chart.
"""

import logging
import os
from typing import Any, Dict, List, Mapping, Optional

import matplotlib.pyplot as plt
from openpyxl.utils import get_column_letter
import pandas as pd

from ..base import FileBasedTool
from ..log.match import Match, PlayerRanking
from ..log.views import flattened_summary, player_rankings

__all__ = ['MatchReportExporter']

logger = logging.getLogger(__name__)


class MatchReportExporter(FileBasedTool):
    """Writes match statistics to spreadsheet and image reports."""

    SUMMARY_COLUMNS = ['Player', 'Kills']
    MATCH_COLUMNS = ['Match', 'Total Kills', 'Player', 'Kills']
    MEANS_COLUMNS = ['Match', 'Means', 'Kills']
    RANKING_COLUMNS = ['Rank', 'Player', 'Kills']
    DEFAULT_TOP_N = 10

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exporter.

        Args:
            config: Optional configuration dictionary
        """
        super().__init__(config)
        self.initialize_directories()
        self.top_n = self.get_config('kill_tracker.chart_top_n', self.DEFAULT_TOP_N)
        self.chart_dpi = self.get_config('kill_tracker.chart_dpi', 150)

    def build_frames(self, matches: Mapping[str, Match]) -> Dict[str, pd.DataFrame]:
        """
        Build one DataFrame per report sheet.

        Args:
            matches: Completed matches keyed by match id

        Returns:
            Ordered mapping of sheet name to DataFrame
        """
        summary = flattened_summary(matches)
        summary_rows = [
            {'Player': player, 'Kills': summary['kills'][player]}
            for player in summary['players']
        ]

        match_rows = []
        means_rows = []
        for match_id, match in matches.items():
            for player in match.players:
                match_rows.append({
                    'Match': match_id,
                    'Total Kills': match.total_kills,
                    'Player': player,
                    'Kills': match.kills.get(player, 0),
                })
            for means, count in sorted(match.kills_by_means.items(), key=lambda kv: (-kv[1], kv[0])):
                means_rows.append({'Match': match_id, 'Means': means, 'Kills': count})

        ranking_rows = [
            {'Rank': rank, 'Player': entry.name, 'Kills': entry.kills}
            for rank, entry in enumerate(player_rankings(matches), start=1)
        ]

        return {
            'Summary': pd.DataFrame(summary_rows, columns=self.SUMMARY_COLUMNS),
            'Matches': pd.DataFrame(match_rows, columns=self.MATCH_COLUMNS),
            'Kills by Means': pd.DataFrame(means_rows, columns=self.MEANS_COLUMNS),
            'Ranking': pd.DataFrame(ranking_rows, columns=self.RANKING_COLUMNS),
        }

    def export_excel(self, matches: Mapping[str, Match], output_path: Optional[str] = None) -> str:
        """
        Save match statistics to an Excel workbook.

        Args:
            matches: Completed matches keyed by match id
            output_path: Optional target path (default: timestamped file in the output dir)

        Returns:
            Path to the written workbook
        """
        if output_path is None:
            output_path = os.path.join(self.output_dir or 'output',
                                       self.generate_timestamped_filename("match_report", "xlsx"))
        excel_path = self.resolve_path(output_path)
        os.makedirs(os.path.dirname(excel_path), exist_ok=True)

        frames = self.build_frames(matches)
        with pd.ExcelWriter(excel_path, engine='openpyxl') as writer:
            for sheet_name, df in frames.items():
                df.to_excel(writer, sheet_name=sheet_name, index=False)
                worksheet = writer.sheets[sheet_name]
                # Widen columns to fit player names
                for idx, column in enumerate(df.columns, 1):
                    letter = get_column_letter(idx)
                    longest = max([len(str(v)) for v in df[column]] + [len(column)])
                    worksheet.column_dimensions[letter].width = min(longest + 2, 50)

        logger.info(f"Match report saved to: {excel_path}")
        return excel_path

    def plot_ranking(self, rankings: List[PlayerRanking], output_path: Optional[str] = None,
                     top_n: Optional[int] = None, title: Optional[str] = "Kill Ranking") -> str:
        """
        Draw the top of the kill ranking as a horizontal bar chart.

        Args:
            rankings: Ranking entries, best first
            output_path: Optional target path (default: timestamped PNG in the output dir)
            top_n: Number of players to show (default: kill_tracker.chart_top_n)
            title: Chart title, or None for no title

        Returns:
            Path to the saved image

        Raises:
            ValueError: If there is nothing to plot
        """
        if not rankings:
            raise ValueError("No ranking entries to plot")

        top = rankings[:top_n or self.top_n]
        # Best player on top
        names = [entry.name for entry in reversed(top)]
        kills = [entry.kills for entry in reversed(top)]

        plt.figure(figsize=(10, max(3, 0.5 * len(top) + 1)))
        bars = plt.barh(names, kills, color='firebrick', edgecolor='black', linewidth=0.5)
        for bar, value in zip(bars, kills):
            plt.annotate(str(value),
                         xy=(bar.get_width(), bar.get_y() + bar.get_height() / 2),
                         xytext=(3, 0), textcoords='offset points',
                         va='center', fontsize=8)
        plt.xlabel('Kills')
        if title:
            plt.title(title, fontsize=14, fontweight='bold')
        plt.tight_layout()

        if output_path is None:
            output_path = os.path.join(self.output_dir or 'output',
                                       self.generate_timestamped_filename("kill_ranking", "png"))
        output_path = self.resolve_path(output_path)
        self.ensure_dir(os.path.dirname(output_path))

        plt.savefig(output_path, dpi=self.chart_dpi, bbox_inches='tight', facecolor='white')
        plt.close()

        logger.info(f"Ranking chart saved to: {output_path}")
        return output_path

    def run(self, matches: Mapping[str, Match], excel: bool = True, chart: bool = True) -> Dict[str, Any]:
        """
        Export the requested reports.

        Args:
            matches: Completed matches keyed by match id
            excel: Write the Excel workbook
            chart: Write the ranking chart

        Returns:
            Dictionary with the written file paths
        """
        result = {"excel_file": None, "chart_file": None}
        if excel:
            result["excel_file"] = self.export_excel(matches)
        if chart:
            rankings = player_rankings(matches)
            if rankings:
                result["chart_file"] = self.plot_ranking(rankings)
            else:
                logger.warning("No players to plot, skipping ranking chart.")
        return result
