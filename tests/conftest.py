import pathlib
import sys

import nonebot


def pytest_configure():
    root = pathlib.Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    # The plugin registers a matcher and driver hooks at import time.
    nonebot.init(driver="~none")
