# main.py
import json
import logging

from api.api import analyze_url
from config import configure_logging
from errors import InvalidURLError

logger = logging.getLogger(__name__)


def print_json(obj):
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def print_progress(stage: str, percent: int):
    print(f"  [{percent:3d}%] {stage}")


def main_loop():
    configure_logging()
    print("Phishing URL Checker - layered threat scoring\n")
    while True:
        try:
            url = input("Enter URL to analyze (press Enter to exit): ").strip()
            if url == "":
                break
            try:
                result = analyze_url(url, progress=print_progress)
            except InvalidURLError as exc:
                logger.debug("Rejected input %r: %s", url, exc.reason)
                print("Analysis failed, check URL format.")
                continue
            print_json(result.to_dict())
        except (KeyboardInterrupt, EOFError):
            break


if __name__ == "__main__":
    main_loop()
