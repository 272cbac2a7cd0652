import logging
import os
import subprocess
import sys

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("entrypoint")


def _env_flag(name: str) -> bool:
  return (os.getenv(name, "") or "").strip().lower() in {"1", "true", "yes", "on"}


def main() -> None:
  """Optionally apply migrations, then replace this process with uvicorn."""
  if _env_flag("GUIDEBOOK_AUTO_APPLY_MIGRATIONS"):
    logger.info("Running database migrations...")
    try:
      subprocess.run([sys.executable, "-m", "alembic", "upgrade", "head"], check=True)
    except subprocess.CalledProcessError as e:
      logger.error("Migration failed with exit code %s", e.returncode)
      sys.exit(e.returncode)
  else:
    logger.info("Skipping migrations (set GUIDEBOOK_AUTO_APPLY_MIGRATIONS=1 to apply on start)")

  port = os.getenv("PORT", "8002")
  logger.info("Starting application on port %s...", port)
  # execvp hands SIGTERM straight to uvicorn.
  args = ["uvicorn", "guidebook.main:app", "--host", "0.0.0.0", "--port", port, "--no-server-header"]
  os.execvp("uvicorn", args)


if __name__ == "__main__":
  main()
