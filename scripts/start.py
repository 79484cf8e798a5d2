#!/usr/bin/env python3
import os
import subprocess
import sys
import time
from pathlib import Path

from utils import (
    API_HOST,
    API_PID_FILE,
    API_PORT,
    LOG_DIR,
    REPO_ROOT,
    http_ok,
    is_windows,
    load_local_env,
    logger,
)

STARTUP_TIMEOUT_SEC = 30


def background_popen(
    cmd: list[str], stdout_path: Path, stderr_path: Path, env: dict[str, str]
) -> subprocess.Popen[bytes]:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    extra: dict[str, object] = (
        {"creationflags": subprocess.CREATE_NO_WINDOW}  # type: ignore[attr-defined]
        if is_windows()
        else {"start_new_session": True}
    )
    with (
        stdout_path.open("ab", buffering=0) as stdout_f,
        stderr_path.open("ab", buffering=0) as stderr_f,
    ):
        return subprocess.Popen(  # noqa: S603
            cmd,
            cwd=str(REPO_ROOT),
            stdout=stdout_f,
            stderr=stderr_f,
            env=env,
            **extra,  # type: ignore[arg-type]
        )


def wait_until_ready(url: str, timeout: float) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if http_ok(url):
            return True
        time.sleep(0.5)
    return False


def start_api(env: dict[str, str]) -> None:
    proc = background_popen(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "idle_notifier.api.main:app",
            "--port",
            str(API_PORT),
            "--host",
            API_HOST,
        ],
        stdout_path=LOG_DIR / "api.log",
        stderr_path=LOG_DIR / "api.err.log",
        env=env,
    )
    API_PID_FILE.write_text(str(proc.pid), encoding="ascii")
    if wait_until_ready(f"http://{API_HOST}:{API_PORT}/status", STARTUP_TIMEOUT_SEC):
        logger.info(f"API Server: http://{API_HOST}:{API_PORT} が起動 (PID {proc.pid})")
    else:
        logger.warning("API が応答しません ./log/ 以下を見て")


def main() -> int:
    os.chdir(REPO_ROOT)

    logger.info("================ Idle Notifier starting up... ===============")

    load_local_env()
    child_env = os.environ.copy()
    child_env["PYTHONPATH"] = os.pathsep.join(
        filter(None, [str(REPO_ROOT / "src"), child_env.get("PYTHONPATH")])
    )

    start_api(child_env)

    logger.info("\nLogs: ./log/api.log, ./log/idle_notifier.log")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
