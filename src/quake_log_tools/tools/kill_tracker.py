#!/usr/bin/env python3
"""
Quake Log Tools - Kill Tracker

Parses a Quake III Arena games.log and reports players, kills per player
and kills by means of death for every match, plus a global kill ranking.
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from quake_log_tools.base import QuakeTool, JSONTool
from quake_log_tools.log.games_parser import GamesLogParser
from quake_log_tools.log.log_downloader import LogDownloader, is_remote_source
from quake_log_tools.log.match import PlayerRanking
from quake_log_tools.tools.match_report import MatchReportExporter

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ('basic', 'multi', 'ranking', 'all')


def format_ranking_lines(rankings: List[PlayerRanking]) -> List[str]:
    """Render ranking entries as ``<rank>. <name> - <kills> kills``."""
    return [f"{rank}. {entry.name} - {entry.kills} kills" for rank, entry in enumerate(rankings, start=1)]


def rankings_to_dicts(rankings: List[PlayerRanking]) -> List[Dict[str, Any]]:
    return [{"name": entry.name, "kills": entry.kills} for entry in rankings]


class KillTracker(JSONTool):
    """
    Tracks and ranks player kills from a Quake III games.log.

    This class runs the games.log parser over one log source and renders
    the parsed matches in the requested output format.
    """

    # Class constants
    LARGE_FILE_BYTES = 100 * 1024 * 1024
    CSV_HEADERS = ["Rank", "Player", "Kills"]

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the KillTracker with configuration.

        Args:
            config: Configuration dictionary from Config class
        """
        super().__init__(config)
        self.default_format = self.get_config('kill_tracker.default_format', 'basic')
        self.max_malformed_samples = self.get_config('kill_tracker.max_malformed_samples', 10)

    def resolve_source(self, source: str) -> str:
        """
        Turn a log source into a readable local path.

        URLs are downloaded into the log directory first.

        Raises:
            FileNotFoundError: If a local source does not exist
            PermissionError: If a local source is not readable
            OSError: If a download fails
        """
        if is_remote_source(source):
            return LogDownloader(self.config).download(source, self.log_dir)

        resolved_path = self.resolve_path(source)
        if not os.path.isfile(resolved_path):
            raise FileNotFoundError(f"Log file not found: {resolved_path}")
        if not os.access(resolved_path, os.R_OK):
            raise PermissionError(f"Log file is not readable: {resolved_path}")

        file_size = os.path.getsize(resolved_path)
        if file_size > self.LARGE_FILE_BYTES:
            logger.warning(f"Large file detected ({file_size / 1024 / 1024:.1f}MB): {resolved_path}")

        return resolved_path

    def parse_log(self, source: str, debug_skipped_file: Optional[str] = None) -> GamesLogParser:
        """
        Parse a log source into matches.

        Args:
            source: Path or http(s) URL of the games.log
            debug_skipped_file: Optional path to write malformed lines to

        Returns:
            The parser holding the completed matches
        """
        file_path = self.resolve_source(source)
        parser = GamesLogParser(max_malformed_samples=self.max_malformed_samples)
        parser.parse_file(file_path, debug_skipped_file=debug_skipped_file)
        return parser

    def build_output(self, parser: GamesLogParser, output_format: str) -> Any:
        """
        Build the machine-readable projection for an output format.

        Returns:
            The flattened summary (basic), the per-match map (multi), the
            ranking list (ranking) or all three keyed by format name (all)
        """
        if output_format == 'basic':
            return parser.get_single_game_output()
        if output_format == 'multi':
            return parser.get_multi_game_output()
        if output_format == 'ranking':
            return rankings_to_dicts(parser.get_player_rankings())
        if output_format == 'all':
            return {
                'basic': parser.get_single_game_output(),
                'multi': parser.get_multi_game_output(),
                'ranking': rankings_to_dicts(parser.get_player_rankings()),
            }
        raise ValueError(f"Unknown output format: {output_format}. Available formats: {', '.join(OUTPUT_FORMATS)}")

    def render_output(self, parser: GamesLogParser, output_format: str) -> str:
        """Render an output format as console text."""
        if output_format == 'ranking':
            lines = ["Player Rankings:", "================"]
            lines.extend(format_ranking_lines(parser.get_player_rankings()))
            return "\n".join(lines)
        if output_format == 'all':
            return "\n\n".join([
                "=== BASIC OUTPUT ===\n" + self.render_output(parser, 'basic'),
                "=== MULTI-GAME OUTPUT ===\n" + self.render_output(parser, 'multi'),
                "=== PLAYER RANKINGS ===\n" + self.render_output(parser, 'ranking'),
            ])
        return json.dumps(self.build_output(parser, output_format), indent=2, ensure_ascii=False)

    def print_results(self, rankings: List[PlayerRanking]) -> int:
        """
        Log the kill ranking.

        Returns:
            Total number of kills credited to players
        """
        if not rankings:
            logger.info("No players found.")
            return 0

        logger.info("Kills per player (ranked):")
        logger.info("=" * 50)
        for line in format_ranking_lines(rankings):
            logger.info(line)
        logger.info("=" * 50)

        grand_total = sum(entry.kills for entry in rankings)
        logger.info(f"Grand Total (GT) of kills: {grand_total}")
        return grand_total

    def save_to_csv(self, rankings: List[PlayerRanking]) -> str:
        """
        Save the kill ranking to a timestamped CSV file in the output directory.

        Returns:
            Path to the saved CSV file
        """
        output_file = self.generate_timestamped_filename("kill_ranking", "csv")
        data = [
            {"Rank": rank, "Player": entry.name, "Kills": entry.kills}
            for rank, entry in enumerate(rankings, start=1)
        ]
        file_path = self.write_csv(data, output_file, headers=self.CSV_HEADERS)
        logger.info(f"Kill ranking saved to: {file_path}")
        return file_path

    def run(self, source: str, output_format: Optional[str] = None, output_file: Optional[str] = None,
            csv: bool = False, excel: bool = False, chart: bool = False,
            debug_skipped_file: Optional[str] = None) -> Dict[str, Any]:
        """
        Run the kill tracker analysis.

        Args:
            source: Path or http(s) URL of the games.log
            output_format: One of basic, multi, ranking, all (default from config)
            output_file: Write the JSON projection to this file instead of stdout
            csv: Also save the ranking as CSV
            excel: Also save an Excel match report
            chart: Also save a ranking bar chart
            debug_skipped_file: Optional path to write malformed lines to

        Returns:
            Dictionary with analysis results
        """
        output_format = output_format or self.default_format
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unknown output format: {output_format}. Available formats: {', '.join(OUTPUT_FORMATS)}")

        result = {
            "success": False,
            "match_count": 0,
            "kill_count": 0,
            "player_count": 0,
            "malformed_lines": 0,
            "output": None,
            "output_file": None,
            "csv_file": None,
            "excel_file": None,
            "chart_file": None,
        }

        logger.info("Starting kill tracker analysis...")
        try:
            parser = self.parse_log(source, debug_skipped_file)
        except OSError as e:
            logger.error(f"Error reading log source {source}: {e}")
            result["error"] = str(e)
            return result

        rankings = parser.get_player_rankings()
        self.print_results(rankings)
        result.update({
            "success": True,
            "match_count": len(parser.matches),
            "kill_count": sum(match.total_kills for match in parser.matches.values()),
            "player_count": len(rankings),
            "malformed_lines": parser.summary.malformed_lines,
        })

        if output_file:
            result["output_file"] = self.write_json(self.build_output(parser, output_format), output_file)
        else:
            result["output"] = self.render_output(parser, output_format)

        if csv:
            result["csv_file"] = self.save_to_csv(rankings)

        if excel or chart:
            report = MatchReportExporter(self.config).run(parser.matches, excel=excel, chart=chart)
            result.update(report)

        logger.info(f"Analysis complete: {result['kill_count']} kills in {result['match_count']} matches "
                    f"from {result['player_count']} players")
        return result


def main():
    """
    Main entry point for the kill tracker command line tool.
    """
    parser = argparse.ArgumentParser(
        description="Parse a Quake III games.log and report kills per match and per player.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s games.log
    %(prog)s games.log --format ranking
    %(prog)s games.log --format all --output report.json --csv --excel
    %(prog)s https://example.com/logs/games.log --format multi

Configuration:
    - kill_tracker.default_format: Output format when --format is not given
    - general.log_download_path: Directory downloaded logs are saved to
    - general.output_path: Directory for JSON, CSV, Excel and chart output
        """
    )
    parser.add_argument("log_file", help="Path or http(s) URL of the games.log file")
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (default: kill_tracker.default_format from config, or basic)"
    )
    parser.add_argument("--output", help="Write the JSON output to this file instead of stdout")
    parser.add_argument("--csv", action="store_true", help="Save the kill ranking as CSV")
    parser.add_argument("--excel", action="store_true", help="Save an Excel match report")
    parser.add_argument("--chart", action="store_true", help="Save a kill ranking bar chart")
    parser.add_argument("--debug-skipped", metavar="FILE", help="Write malformed lines to FILE")

    QuakeTool.add_standard_arguments(parser)
    args = parser.parse_args()

    try:
        config = KillTracker.load_config(args.profile)

        tracker = KillTracker(config)
        result = tracker.run(
            args.log_file,
            output_format=args.format,
            output_file=args.output,
            csv=args.csv,
            excel=args.excel,
            chart=args.chart,
            debug_skipped_file=args.debug_skipped,
        )

        if result["output"] is not None:
            print(result["output"])

        if args.console:
            logger.info(f"Kill tracker analysis completed: {result}")

        return 0 if result["success"] else 1

    except Exception as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
