"""iceberg: incremental filesystem backup to Amazon S3 Glacier.

Each backup run archives only the files changed since the previous run,
together with a snapshot of the whole source tree.  Restore replays the
archives oldest first and reconciles the result against the last snapshot.
Retrieval from Glacier is two-phase: request jobs from a vault inventory,
then download the completed jobs hours later.
"""

__version__ = "1.0.0"

from iceberg.core.workflow import Workflow
from iceberg.cli.app import app as cli

__all__ = ["Workflow", "cli", "__version__"]
