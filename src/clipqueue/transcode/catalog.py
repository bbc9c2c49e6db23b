"""
Catalog scanning and the difference between an input and an output folder.

A catalog is the list of accepted video files found directly inside one
folder, each described by a WorkItem keyed on its identity (the filename up to
the first dot). The pending queue is every input item whose identity has no
match in the output catalog, in input order.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence

from clipqueue.errors import DirectoryUnreadable
from clipqueue.utils import logger, LogLevel
from clipqueue.utils.file_util import split_identity


@dataclass(frozen=True)
class WorkItem:
    identity: str
    source_path: Path
    source_extension: str

    @property
    def name(self) -> str:
        return self.source_path.name


def scan(directory: Path, accepted_extensions: Iterable[str]) -> List[WorkItem]:
    """
    List the accepted video files directly inside `directory`.

    Entries are visited in filename order. Files whose extension (everything
    after the first dot, compared case-sensitively) is not accepted are
    skipped silently, as are sub-directories. When two files share an
    identity the first one wins and the later ones are logged and skipped.

    Raises:
        DirectoryUnreadable: If the folder does not exist or cannot be listed.
    """
    root = Path(directory)
    accepted = frozenset(accepted_extensions)

    try:
        entries = sorted(root.iterdir(), key=lambda p: p.name)
    except FileNotFoundError as e:
        raise DirectoryUnreadable(root, "does not exist") from e
    except NotADirectoryError as e:
        raise DirectoryUnreadable(root, "is not a directory") from e
    except OSError as e:
        raise DirectoryUnreadable(root, f"cannot be listed ({e.strerror or e})") from e

    catalog: List[WorkItem] = []
    seen = {}
    for path in entries:
        name = path.name
        identity, extension = split_identity(name)
        if not identity or extension not in accepted:
            continue
        if not path.is_file():
            continue
        if identity in seen:
            logger.log("catalog.duplicate", LogLevel.WARN,
                       folder=str(root),
                       file=name,
                       kept=seen[identity])
            continue
        seen[identity] = name
        catalog.append(WorkItem(identity=identity,
                                source_path=path.resolve(),
                                source_extension=extension))

    logger.log("catalog.scanned", LogLevel.DEBUG, folder=str(root), count=len(catalog))
    return catalog


def diff(input_catalog: Sequence[WorkItem], output_catalog: Sequence[WorkItem]) -> List[WorkItem]:
    """Return the input items whose identity is absent from `output_catalog`, in input order."""
    done = {item.identity for item in output_catalog}
    return [item for item in input_catalog if item.identity not in done]
