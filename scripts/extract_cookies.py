"""Save Indeed session cookies via patchright for the browser adapter.

Usage:
    .venv/bin/python scripts/extract_cookies.py [--config config/settings.yaml]

Opens a Chromium window on Indeed. Solve any challenge (or sign in), then
press Enter in the terminal. Cookies are written to ``browser.cookies_path``
from the settings file (default config/indeed_cookies.json) and loaded by
BrowserSession on the next scrape.
"""

import argparse
import json
import sys
from pathlib import Path

from patchright.sync_api import sync_playwright

# Ensure project root is on the path when run as a script
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.core.config import BrowserConfig, Settings  # noqa: E402

INDEED_HOME = "https://www.indeed.com/"


def cookies_path(config_path: str) -> Path:
    path = Path(config_path)
    browser = Settings.from_yaml(path).browser if path.exists() else BrowserConfig()
    return Path(browser.cookies_path)


def main() -> None:
    parser = argparse.ArgumentParser(description="Save Indeed cookies for the browser adapter")
    parser.add_argument("--config", default="config/settings.yaml", help="Path to settings YAML")
    args = parser.parse_args()

    output = cookies_path(args.config)
    output.parent.mkdir(parents=True, exist_ok=True)

    with sync_playwright() as p:
        browser = p.chromium.launch(headless=False)
        context = browser.new_context()
        page = context.new_page()
        page.goto(INDEED_HOME)

        input("\n>>> Clear any challenge on Indeed, then press Enter here to save cookies...")

        cookies = context.cookies()
        output.write_text(json.dumps(cookies, indent=2))
        print(f"Saved {len(cookies)} cookies to {output}")

        browser.close()


if __name__ == "__main__":
    main()
