#!/usr/bin/env python3
import contextlib
import os
from pathlib import Path

import psutil
from utils import API_PID_FILE, REPO_ROOT, logger


def stop_by_pid_file(path: Path) -> None:
    if not path.exists():
        return
    pid = int(path.read_text(encoding="ascii"))
    try:
        proc = psutil.Process(pid)
        proc.terminate()
    except psutil.NoSuchProcess:
        logger.info("すでに停止済みです")
    with contextlib.suppress(OSError):
        path.unlink(missing_ok=True)


def main() -> int:
    os.chdir(REPO_ROOT)

    logger.info("============== Idle Notifier 停止中 ================")
    stop_by_pid_file(API_PID_FILE)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
