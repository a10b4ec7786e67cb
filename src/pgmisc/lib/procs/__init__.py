"""Server process lookup and signal delivery."""

from pgmisc.lib.procs.process_groups import ProcessGroupSender, supports_process_groups
from pgmisc.lib.procs.registry import ClusterProcessRegistry, read_supervisor_pid
from pgmisc.lib.procs.signals import parse_signal, signal_backend, signal_backends

__all__ = [
    "ClusterProcessRegistry",
    "ProcessGroupSender",
    "parse_signal",
    "read_supervisor_pid",
    "signal_backend",
    "signal_backends",
    "supports_process_groups",
]
