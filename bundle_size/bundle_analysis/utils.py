import logging
import os
import stat
from typing import Tuple

log = logging.getLogger(__name__)

StrPath = str | os.PathLike


def file_size(path: StrPath) -> Tuple[int, bool]:
    """
    Size in bytes of a single asset, and whether it was found.

    A missing asset is a normal condition (bundlers prune files that manifests still
    list), so this returns `(0, False)` instead of raising. Paths the OS refuses to
    stat (too long, no permission) count as missing too.
    """
    try:
        st = os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return 0, False
    except OSError as exc:
        log.debug(
            "Could not stat asset", extra=dict(path=os.fspath(path), error=str(exc))
        )
        return 0, False
    if not stat.S_ISREG(st.st_mode):
        return 0, False
    return st.st_size, True


def aggregate_size(root_path: StrPath) -> int:
    """
    Sums the size of every regular file below `root_path`.

    Symbolic links are never followed, neither to directories nor to files, so a link
    pointing back up the tree can't make the walk loop. A root that doesn't exist
    weighs 0 bytes: an output that was never built is an empty one. Directories
    and files that can't be read are skipped.
    """
    total = 0
    pending = [os.fspath(root_path)]
    while pending:
        current = pending.pop()
        try:
            entries = list(os.scandir(current))
        except FileNotFoundError:
            continue
        except NotADirectoryError:
            # root_path itself is a file
            size, found = file_size(current)
            total += size if found and not os.path.islink(current) else 0
            continue
        except OSError as exc:
            log.warning(
                "Could not read directory during size walk",
                extra=dict(path=current, error=str(exc)),
            )
            continue
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    pending.append(entry.path)
                elif entry.is_file(follow_symlinks=False):
                    total += entry.stat(follow_symlinks=False).st_size
            except FileNotFoundError:
                # removed while walking
                log.debug("File vanished during size walk", extra=dict(path=entry.path))
            except OSError as exc:
                log.warning(
                    "Could not stat file during size walk",
                    extra=dict(path=entry.path, error=str(exc)),
                )
    return total
