import asyncio
import logging

from .repositories import repo_folders


logger = logging.getLogger(__name__)

FETCH_ARGS = ["fetch", "origin", "+refs/heads/*:refs/heads/*", "--prune"]


async def git(folder, *args):
    proc = await asyncio.create_subprocess_exec(
        "git", *args,
        cwd=folder,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    return proc.returncode, stdout.decode(errors="replace"), stderr.decode(errors="replace")


async def fetch_all(root):
    """Fetch every branch of origin into each repository, yielding a plain-text log."""
    for folder in repo_folders(root):
        yield "\n===\n"
        yield folder + "\n"
        try:
            code, remotes, stderr = await git(folder, "remote")
            if code != 0:
                raise RuntimeError(stderr.strip() or f"git remote exited with {code}")
            if not remotes.strip():
                yield "no remote\n"
                continue
            code, stdout, stderr = await git(folder, *FETCH_ARGS)
            yield stdout + "\n"
            yield "\n".join(f"(!) {line}" for line in stderr.split("\n"))
            if code != 0:
                logger.warning("Fetching %s exited with %s", folder, code)
                yield f"\n(!!) git fetch exited with {code}\n"
        except (OSError, RuntimeError) as exc:
            logger.warning("Fetching %s failed: %s", folder, exc)
            yield f"(!!) {exc}"
