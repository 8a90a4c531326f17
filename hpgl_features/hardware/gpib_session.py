"""GPIB session to the plotter over PyVISA.

Handles:
    - Opening the instrument resource and applying timeout/terminations
    - Device clear on open (flushes any half-received instruction)
    - Plain writes and query (write + read) round-trips
    - The ``ESC.T`` / ``ESC.L`` I/O buffer set-up
    - Raising the timeout once plotting starts

Every PyVISA error is re-raised as :class:`TransportFailure`
(:class:`TransportTimeout` for ``VI_ERROR_TMO``) so the caller only deals
with the package's own taxonomy.
"""

from __future__ import annotations

import logging
from typing import Any

import pyvisa
from pyvisa.constants import StatusCode
from pyvisa.errors import VisaIOError

from hpgl_features.configs.loader import ConnectionConfig, IOBufferConfig
from hpgl_features.errors import TransportFailure, TransportTimeout

logger = logging.getLogger(__name__)

# Output buffer space query; the plotter answers with a byte count
BUFFER_SIZE_QUERY = "\x1b.L"


def _wrap(exc: VisaIOError, action: str, resource: str) -> TransportFailure:
    """Translate a PyVISA error into the package taxonomy."""
    message = f"{action} on {resource} failed: {exc}"
    if exc.error_code == StatusCode.error_timeout:
        return TransportTimeout(message)
    return TransportFailure(message)


class GpibSession:
    """Line-oriented session with one GPIB instrument.

    Parameters
    ----------
    resource_name : str
        VISA resource, e.g. ``"GPIB0::6::INSTR"``.
    timeout_ms : int
        Initial I/O timeout in milliseconds.
    write_termination : str
        Appended by VISA to every write.
    read_termination : str
        Marks the end of each reply.
    backend : str
        PyVISA backend (``""`` for the system default, ``"@py"`` for
        pyvisa-py).
    resource_manager : pyvisa.ResourceManager, optional
        Pre-built manager (tests inject a mock here).

    Examples
    --------
    >>> with GpibSession("GPIB0::6::INSTR") as session:
    ...     session.query("OW;")
    '0,0,10365,7962'
    """

    def __init__(
        self,
        resource_name: str,
        timeout_ms: int = 2000,
        write_termination: str = "\n",
        read_termination: str = "\r",
        backend: str = "",
        resource_manager: Any | None = None,
    ) -> None:
        self.resource_name = resource_name
        self.timeout_ms = timeout_ms
        self.write_termination = write_termination
        self.read_termination = read_termination
        self.backend = backend

        self._rm = resource_manager
        self._owns_rm = resource_manager is None
        self._instrument: Any | None = None

    @classmethod
    def from_config(
        cls,
        cfg: ConnectionConfig,
        resource_manager: Any | None = None,
    ) -> GpibSession:
        """Build a session from the ``connection`` config section."""
        return cls(
            cfg.resource_name,
            timeout_ms=cfg.timeout_ms,
            write_termination=cfg.write_termination,
            read_termination=cfg.read_termination,
            backend=cfg.backend,
            resource_manager=resource_manager,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        """``True`` while the instrument resource is open."""
        return self._instrument is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Open the resource, apply settings and send a device clear.

        Raises
        ------
        TransportFailure
            If VISA cannot open or clear the instrument.
        """
        if self.is_open:
            return

        logger.info("Opening %s (timeout %d ms)", self.resource_name, self.timeout_ms)
        try:
            if self._rm is None:
                self._rm = pyvisa.ResourceManager(self.backend)
            instrument = self._rm.open_resource(self.resource_name)
            instrument.timeout = self.timeout_ms
            instrument.write_termination = self.write_termination
            instrument.read_termination = self.read_termination
            instrument.clear()
        except VisaIOError as exc:
            raise _wrap(exc, "open", self.resource_name) from exc
        except (OSError, ValueError) as exc:
            # No VISA library installed, or malformed resource name
            raise TransportFailure(
                f"open on {self.resource_name} failed: {exc}"
            ) from exc

        self._instrument = instrument
        logger.info("Opened %s", self.resource_name)

    def close(self) -> None:
        """Close the resource (and the manager if this session created it)."""
        if self._instrument is not None:
            try:
                self._instrument.close()
            except VisaIOError as exc:
                logger.warning("Error closing %s: %s", self.resource_name, exc)
            self._instrument = None
            logger.info("Closed %s", self.resource_name)

        if self._owns_rm and self._rm is not None:
            try:
                self._rm.close()
            except VisaIOError as exc:
                logger.warning("Error closing resource manager: %s", exc)
            self._rm = None

    def __enter__(self) -> GpibSession:
        self.open()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # I/O
    # ------------------------------------------------------------------

    def _require_open(self) -> Any:
        if self._instrument is None:
            raise TransportFailure(f"session to {self.resource_name} is not open")
        return self._instrument

    def write(self, command: str) -> None:
        """Send one instruction string.

        Raises
        ------
        TransportFailure
            On any VISA error (``TransportTimeout`` on timeout).
        """
        instrument = self._require_open()
        logger.debug("-> %r", command)
        try:
            instrument.write(command)
        except VisaIOError as exc:
            raise _wrap(exc, "write", self.resource_name) from exc

    def query(self, command: str) -> str:
        """Send *command* and return the reply with terminators stripped."""
        instrument = self._require_open()
        logger.debug("-> %r", command)
        try:
            reply = instrument.query(command)
        except VisaIOError as exc:
            raise _wrap(exc, "query", self.resource_name) from exc
        reply = reply.strip()
        logger.debug("<- %r", reply)
        return reply

    def set_timeout(self, timeout_ms: int) -> None:
        """Change the I/O timeout of the open session."""
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got {timeout_ms}")
        instrument = self._require_open()
        instrument.timeout = timeout_ms
        self.timeout_ms = timeout_ms
        logger.info("Timeout set to %d ms", timeout_ms)

    def configure_buffer(self, cfg: IOBufferConfig) -> str | None:
        """Send the ``ESC.T`` allocation and query the buffer size.

        Returns
        -------
        str | None
            The ``ESC.L`` reply, or ``None`` when the set-up is disabled.
        """
        if not cfg.enabled:
            logger.debug("I/O buffer set-up disabled")
            return None
        self.write(cfg.command)
        size = self.query(BUFFER_SIZE_QUERY)
        logger.info("I/O buffer configured, %s bytes available", size)
        return size
