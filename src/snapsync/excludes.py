import contextlib
import os
import pathlib
import tempfile
import typing as t

from . import constants, logging

logger = logging.getLogger(__name__)


def build_exclusions(
    user_patterns: t.Iterable[str],
    defaults: t.Iterable[str] = constants.DEFAULT_EXCLUDES,
) -> t.List[str]:
    """
    Combine the user's exclusion patterns with the built in defaults.
    User patterns come first. Nothing is deduplicated,
    rsync matches every pattern independently.
    """
    return list(user_patterns) + list(defaults)


@contextlib.contextmanager
def exclusion_file(patterns: t.Iterable[str]) -> t.Iterator[pathlib.Path]:
    """
    Write the patterns to a temporary file suitable for `rsync --exclude-from`,
    one pattern per line. The file is removed when the context exits,
    however it exits.
    """
    fd, name = tempfile.mkstemp(prefix='snapsync-exclude-', suffix='.txt')
    path = pathlib.Path(name)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            for pattern in patterns:
                f.write(pattern + '\n')
        logger.log(logging.DEBUG, "Wrote exclusion patterns to %s", path)
        yield path
    finally:
        with contextlib.suppress(FileNotFoundError):
            path.unlink()
        logger.log(logging.DEBUG, "Removed %s", path)
