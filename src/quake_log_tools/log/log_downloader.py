"""
Remote Log Downloader

Fetches a games.log file over HTTP(S) and stores it in the local log
directory so the kill tracker can parse it like any other file.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests

from ..base import FileBasedTool, QuakeTool

logger = logging.getLogger(__name__)


def is_remote_source(source: str) -> bool:
    """True if the log source is an http(s) URL rather than a local path."""
    return urlparse(source).scheme in ('http', 'https')


class LogDownloader(FileBasedTool):
    """Tool for downloading a games.log file from a web server."""

    DEFAULT_TIMEOUT = 30
    DEFAULT_FILENAME = "games.log"

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the log downloader.

        Args:
            config: Optional configuration dictionary.
        """
        super().__init__(config)
        self.initialize_directories()
        self.timeout = self.get_config('log_downloader.timeout', self.DEFAULT_TIMEOUT)
        self.ssl_verify = self.get_config('log_downloader.ssl_verify', True)

    def _target_filename(self, url: str) -> str:
        configured = self.get_config('log_downloader.filename')
        if configured:
            return configured
        name = Path(urlparse(url).path).name
        return name or self.DEFAULT_FILENAME

    def download(self, url: str, output_dir: Optional[str] = None) -> str:
        """
        Download a log file.

        Args:
            url: http(s) URL of the log file
            output_dir: Directory to save the file to (default: configured log directory)

        Returns:
            Path to the downloaded file

        Raises:
            OSError: If the download fails or the file cannot be written
        """
        if not is_remote_source(url):
            raise ValueError(f"Not an http(s) URL: {url}")

        target_dir = Path(self.ensure_dir(output_dir or self.log_dir or '.'))
        file_path = target_dir / self._target_filename(url)

        logger.info(f"Downloading {url}")
        try:
            response = requests.get(url, timeout=self.timeout, verify=self.ssl_verify)
            response.raise_for_status()
        except requests.RequestException as e:
            raise OSError(f"Failed to download log from {url}: {e}") from e

        with open(file_path, 'wb') as f:
            f.write(response.content)

        logger.info(f"Successfully saved: {file_path}")
        return str(file_path)

    def run(self, url: str, output_dir: Optional[str] = None) -> Dict[str, Any]:
        """
        Run the downloader.

        Args:
            url: http(s) URL of the log file
            output_dir: Directory to save the file to

        Returns:
            Dictionary with download results
        """
        try:
            file_path = self.download(url, output_dir)
        except (OSError, ValueError) as e:
            logger.error(f"Error downloading log: {e}")
            return {"success": False, "error": str(e), "file_path": None}

        return {"success": True, "file_path": file_path}


def main():
    parser = argparse.ArgumentParser(
        description="Download a Quake III games.log file from a web server"
    )
    parser.add_argument("url", help="http(s) URL of the log file")
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save the log to (default: general.log_download_path from config)",
    )
    QuakeTool.add_standard_arguments(parser)
    args = parser.parse_args()

    config = QuakeTool.load_config(args.profile)
    downloader = LogDownloader(config)
    result = downloader.run(args.url, args.output_dir)

    if args.console:
        logger.info(f"Log download completed: {result}")

    return 0 if result["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
