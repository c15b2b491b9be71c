#!/usr/bin/env python3
# backend/run_celery_worker.py
"""
Development Celery worker runner.

Consumes the reminders queue. Set CELERY_EMBED_BEAT=1 to run the beat
scheduler inside the worker so the reminder sweep fires locally without a
separate beat process.
"""
import os
from pathlib import Path
import subprocess
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

os.environ.setdefault("ENVIRONMENT", "development")

if __name__ == "__main__":
    queues = os.getenv("CELERY_QUEUES") or "reminders,celery"
    print(f"Starting Celery worker (ENVIRONMENT={os.environ['ENVIRONMENT']})")
    print(f"Consuming queues: {queues}")

    cmd = [
        sys.executable,
        "-m",
        "celery",
        "-A",
        "app.tasks.celery_app",
        "worker",
        "--loglevel=info",
        "--concurrency=2",
        "--max-tasks-per-child=100",
        "-Q",
        queues,
    ]
    if os.getenv("CELERY_EMBED_BEAT") == "1":
        cmd.append("--beat")

    subprocess.run(cmd)
