import logging
import os
import subprocess
from contextlib import contextmanager
from typing import Iterator, List, Optional

log = logging.getLogger(__name__)


class CommandError(Exception):
    def __init__(self, command: List[str], returncode: Optional[int], output: str):
        super().__init__(command, returncode, output)
        self.command = command
        self.returncode = returncode
        self.output = output

    def __str__(self) -> str:
        command = " ".join(self.command)
        return (
            f"Command {command!r} failed ({self.returncode}): {self.output.strip()}"
        )


class CheckoutRestoreError(Exception):
    """The working copy could not be put back on the ref it was on"""

    def __init__(self, original_ref: str, cause: CommandError):
        super().__init__(original_ref, cause)
        self.original_ref = original_ref
        self.cause = cause

    def __str__(self) -> str:
        return f"Could not restore checkout of {self.original_ref}: {self.cause}"


def run_command(command: List[str], cwd: str | os.PathLike) -> str:
    log.info(
        "Running command", extra=dict(command=" ".join(command), cwd=os.fspath(cwd))
    )
    try:
        proc = subprocess.run(
            command, cwd=cwd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True
        )
    except OSError as exc:
        raise CommandError(command, None, str(exc))
    if proc.returncode != 0:
        raise CommandError(command, proc.returncode, proc.stderr or proc.stdout)
    return proc.stdout


def current_ref(working_dir: str | os.PathLike) -> str:
    """
    The branch name when on a branch, otherwise the commit sha (detached HEAD).
    """
    try:
        branch = run_command(
            ["git", "symbolic-ref", "--quiet", "--short", "HEAD"], working_dir
        ).strip()
    except CommandError:
        branch = ""
    if branch:
        return branch
    return run_command(["git", "rev-parse", "HEAD"], working_dir).strip()


def _restore_checkout(
    working_dir: str | os.PathLike, original_ref: str, raise_errors: bool
) -> None:
    try:
        run_command(["git", "checkout", "--quiet", original_ref], working_dir)
    except CommandError as exc:
        log.error(
            "Could not restore original checkout",
            extra=dict(
                original_ref=original_ref,
                working_dir=os.fspath(working_dir),
                error=str(exc),
            ),
        )
        if raise_errors:
            raise CheckoutRestoreError(original_ref, exc) from exc
        return
    log.info("Restored original checkout", extra=dict(original_ref=original_ref))


@contextmanager
def temporary_checkout(
    working_dir: str | os.PathLike,
    branch: str,
    remote: Optional[str] = "origin",
) -> Iterator[str]:
    """
    Checks out `branch` (fetched from `remote` when one is given) for the duration of
    the block and always puts the working copy back on the ref it was on, exactly
    once, whether the block succeeds or not.

    If restoring fails while the block is already failing, the restore failure is
    logged and the block's own exception propagates. If the block succeeded, the
    restore failure is raised as `CheckoutRestoreError`.

    Yields the ref that will be restored.
    """
    original_ref = current_ref(working_dir)
    log.info(
        "Switching working copy to base branch",
        extra=dict(branch=branch, original_ref=original_ref),
    )
    try:
        if remote:
            run_command(["git", "fetch", remote, branch], working_dir)
            target = f"{remote}/{branch}"
        else:
            target = branch
        run_command(["git", "checkout", "--quiet", target], working_dir)
        yield original_ref
    except BaseException:
        _restore_checkout(working_dir, original_ref, raise_errors=False)
        raise
    else:
        _restore_checkout(working_dir, original_ref, raise_errors=True)
