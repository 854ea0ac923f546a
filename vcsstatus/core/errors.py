"""Exception types shared across vcsstatus."""


class VcsStatusError(Exception):
    """Base class for every vcsstatus error."""


class CommandError(VcsStatusError):
    """A VCS subprocess could not be executed or did not finish in time."""


class DaemonStartupError(VcsStatusError):
    """The daemon could not start serving."""


class SocketInUseError(DaemonStartupError):
    """Something already exists at the socket path and overwrite was not allowed."""


class ProtocolError(VcsStatusError):
    """A request or response could not be encoded or decoded."""


class DaemonUnavailableError(VcsStatusError):
    """The client could not connect to the daemon."""


class ClientProtocolError(VcsStatusError):
    """The client failed while sending a request or reading the response."""
