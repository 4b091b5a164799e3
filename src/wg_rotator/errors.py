# src/wg_rotator/errors.py
"""Exceptions raised by the store, the control plane and the controller."""


class WgRotatorError(Exception):
    """Base class for every error raised by wg_rotator."""


# ---------- Configuration ----------

class ConfigNotFound(WgRotatorError, FileNotFoundError):
    """A configuration entry (or the configuration directory) cannot be read."""


class ConfigMalformed(WgRotatorError, ValueError):
    """Required fields could not be extracted from a configuration text."""

    def __init__(self, name: str, missing=()):
        self.name = name
        self.missing = list(missing)
        if self.missing:
            msg = f"Config '{name}' is missing: {', '.join(self.missing)}"
        else:
            msg = f"Config '{name}' is malformed"
        super().__init__(msg)


class DuplicateName(WgRotatorError, ValueError):
    """An endpoint with the same name already exists in the pool."""


# ---------- Pool / sélection ----------

class EndpointNotFound(WgRotatorError, KeyError):
    """The requested endpoint name is not in the pool."""

    def __str__(self):
        # KeyError.__str__ ajoute des guillemets autour du message
        return str(self.args[0]) if self.args else ""


class NoCurrentEndpoint(WgRotatorError):
    """No pool entry matches the live connection."""


class NoEndpointsAvailable(WgRotatorError):
    """The pool is empty."""


class NoRotationCandidates(WgRotatorError):
    """The only endpoint in the pool is the one being rotated away from."""


# ---------- Connexion ----------

class ConnectFailed(WgRotatorError):
    """The control plane did not confirm a bring-up."""


class DisconnectFailed(WgRotatorError):
    """The control plane did not confirm a teardown."""


class ControlPlaneError(WgRotatorError):
    """A control-plane command is missing or exited with an error."""


class ControlPlaneTimeout(ControlPlaneError):
    """A control-plane command did not finish in time."""
