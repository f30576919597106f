"""
Logging Configuration and Audit Trail Infrastructure.

This module provides structured logging for the projection engine and an
audit trail of the events a caller may need to reconstruct after the
fact: which configuration produced a result, where degenerate geometry
forced a sentinel value, and how far iterative inversions converged.

Audit Contents
--------------
Every session records:
- Configuration hash
- Degenerate-geometry events (sentinels and fallbacks)
- Convergence records of iterative inversions
"""

import hashlib
import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Deque, Dict, Optional
from contextlib import contextmanager
import threading
from collections import deque


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Get a logger configured for the projection engine.

    Parameters
    ----------
    name : str
        Logger name (typically __name__).
    level : int
        Logging level.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


@dataclass
class DegenerateGeometryEvent:
    """Record of a degenerate-geometry sentinel or fallback.

    Attributes
    ----------
    timestamp : datetime
        When the event occurred.
    strategy : str
        Projection mode code that produced it.
    kind : str
        Status name, e.g. 'ANTIPODAL_FALLBACK'.
    inputs : dict
        The coordinates that triggered the event.
    context : dict
        Additional context (reference point, matrix determinant, ...).
    """
    timestamp: datetime
    strategy: str
    kind: str
    inputs: Dict[str, Any]
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ConvergenceRecord:
    """Record of an iterative inversion.

    Attributes
    ----------
    timestamp : datetime
        When the inversion finished.
    strategy : str
        Projection mode code used for the forward evaluations.
    residual : float
        Final planar error magnitude.
    tolerance : float
        Convergence tolerance.
    iterations : int
        Iterations spent.
    converged : bool
        Whether the residual fell below the tolerance.
    """
    timestamp: datetime
    strategy: str
    residual: float
    tolerance: float
    iterations: int
    converged: bool


@dataclass
class SessionMetadata:
    """Metadata for a projection session."""
    session_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    config_hash: str = ""
    degenerate_events: Deque[DegenerateGeometryEvent] = field(default_factory=deque)
    convergence_records: Deque[ConvergenceRecord] = field(default_factory=deque)

    def compute_config_hash(self, config: Dict[str, Any]) -> str:
        """Compute a deterministic hash of the configuration.

        Parameters
        ----------
        config : dict
            The configuration dictionary.

        Returns
        -------
        str
            First 16 hex digits of the SHA-256 of the sorted JSON.
        """
        self.config_hash = config_hash(config)
        return self.config_hash


def config_hash(config: Dict[str, Any]) -> str:
    """Deterministic 16-hex-digit hash of a configuration dictionary."""
    config_str = json.dumps(config, sort_keys=True, default=str)
    return hashlib.sha256(config_str.encode()).hexdigest()[:16]


class AuditLogger:
    """Audit trail of degenerate geometry and iterative convergence.

    Events are kept per session. Outside a session they are still logged,
    and the most recent `default_capacity` of each kind are kept in the
    default session; older ones are dropped.

    Thread Safety
    -------------
    All methods are thread-safe; batch workers may record concurrently.

    Examples
    --------
    >>> audit = AuditLogger()
    >>> with audit.session_context("survey_001", {"mode": "QUANTUM_GNOMONIC"}):
    ...     audit.log_degenerate_geometry(
    ...         strategy="QUANTUM_GNOMONIC",
    ...         kind="ANTIPODAL_FALLBACK",
    ...         inputs={"longitude": 0.0, "latitude": 90.0},
    ...     )
    >>> summary = audit.get_session_summary("survey_001")
    """

    DEFAULT_SESSION = "default"
    DEFAULT_CAPACITY = 1000

    def __init__(self, name: str = "audit", default_capacity: int = DEFAULT_CAPACITY):
        """Initialize the audit logger.

        Parameters
        ----------
        name : str
            Logger name.
        default_capacity : int
            Maximum events and records of each kind kept outside a session.
        """
        if default_capacity < 1:
            raise ValueError(f"default_capacity must be positive, got {default_capacity}")

        self._lock = threading.RLock()
        self._sessions: Dict[str, SessionMetadata] = {
            self.DEFAULT_SESSION: SessionMetadata(
                session_id=self.DEFAULT_SESSION,
                start_time=datetime.now(),
                degenerate_events=deque(maxlen=default_capacity),
                convergence_records=deque(maxlen=default_capacity),
            )
        }
        self._current_session_id: str = self.DEFAULT_SESSION
        self._logger = get_logger(name)

    @contextmanager
    def session_context(self, session_id: str, config: Optional[Dict[str, Any]] = None):
        """Context manager for a projection session.

        Parameters
        ----------
        session_id : str
            Unique identifier for this session.
        config : dict, optional
            Configuration to compute hash from.

        Yields
        ------
        SessionMetadata
            The metadata object for this session.
        """
        metadata = SessionMetadata(
            session_id=session_id,
            start_time=datetime.now()
        )

        if config:
            metadata.compute_config_hash(config)

        with self._lock:
            self._sessions[session_id] = metadata
            previous = self._current_session_id
            self._current_session_id = session_id

        self._logger.info(f"Starting session {session_id} with config hash {metadata.config_hash}")

        try:
            yield metadata
        finally:
            metadata.end_time = datetime.now()
            with self._lock:
                self._current_session_id = previous
            self._logger.info(
                f"Completed session {session_id}. "
                f"Degenerate events: {len(metadata.degenerate_events)}, "
                f"Iterative inversions: {len(metadata.convergence_records)}"
            )

    def _current(self) -> SessionMetadata:
        return self._sessions[self._current_session_id]

    def log_degenerate_geometry(
        self,
        strategy: str,
        kind: str,
        inputs: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """Record a sentinel value or fallback.

        Parameters
        ----------
        strategy : str
            Projection mode code.
        kind : str
            Status name of the sentinel.
        inputs : dict
            Coordinates that triggered it.
        context : dict, optional
            Additional context.
        """
        event = DegenerateGeometryEvent(
            timestamp=datetime.now(),
            strategy=strategy,
            kind=kind,
            inputs=dict(inputs),
            context=context or {}
        )

        with self._lock:
            self._current().degenerate_events.append(event)

        log_msg = f"DEGENERATE GEOMETRY | {strategy} | {kind} | inputs={inputs}"

        if kind == "SINGULAR_FALLBACK":
            self._logger.warning(log_msg)
        else:
            self._logger.debug(log_msg)

    def log_convergence(
        self,
        strategy: str,
        residual: float,
        tolerance: float,
        iterations: int
    ) -> None:
        """Record the outcome of an iterative inversion.

        Parameters
        ----------
        strategy : str
            Projection mode code used for forward evaluations.
        residual : float
            Final planar error magnitude.
        tolerance : float
            Convergence tolerance.
        iterations : int
            Iterations spent.
        """
        converged = residual < tolerance

        record = ConvergenceRecord(
            timestamp=datetime.now(),
            strategy=strategy,
            residual=float(residual),
            tolerance=tolerance,
            iterations=iterations,
            converged=converged
        )

        with self._lock:
            self._current().convergence_records.append(record)

        status = "CONVERGED" if converged else "BUDGET EXHAUSTED"
        log_msg = (
            f"ITERATIVE INVERSE | {strategy} | {status} | "
            f"residual={residual:.6e} (tolerance={tolerance:.6e}, iterations={iterations})"
        )

        if converged:
            self._logger.debug(log_msg)
        else:
            self._logger.warning(log_msg)

    def get_session_summary(self, session_id: str = DEFAULT_SESSION) -> Dict[str, Any]:
        """Get a summary of a projection session.

        Parameters
        ----------
        session_id : str
            The session identifier.

        Returns
        -------
        dict
            Summary including event counts by kind and convergence totals.
        """
        with self._lock:
            if session_id not in self._sessions:
                raise KeyError(f"No session found with ID {session_id}")
            metadata = self._sessions[session_id]
            events = list(metadata.degenerate_events)
            records = list(metadata.convergence_records)

        event_counts: Dict[str, int] = {}
        for e in events:
            event_counts[e.kind] = event_counts.get(e.kind, 0) + 1

        return {
            "session_id": session_id,
            "config_hash": metadata.config_hash,
            "start_time": metadata.start_time.isoformat(),
            "end_time": metadata.end_time.isoformat() if metadata.end_time else None,
            "total_degenerate_events": len(events),
            "degenerate_counts_by_kind": event_counts,
            "iterative_inversions": len(records),
            "converged_inversions": sum(1 for r in records if r.converged),
        }

    def export_session_artifacts(self, session_id: str, output_path: Path) -> None:
        """Export all audit artifacts for a session to JSON.

        Parameters
        ----------
        session_id : str
            The session identifier.
        output_path : Path
            Path to write the JSON file.
        """
        with self._lock:
            if session_id not in self._sessions:
                raise KeyError(f"No session found with ID {session_id}")
            metadata = self._sessions[session_id]
            events = list(metadata.degenerate_events)
            records = list(metadata.convergence_records)

        artifacts = {
            "session_id": metadata.session_id,
            "config_hash": metadata.config_hash,
            "start_time": metadata.start_time.isoformat(),
            "end_time": metadata.end_time.isoformat() if metadata.end_time else None,
            "degenerate_events": [
                {
                    "timestamp": e.timestamp.isoformat(),
                    "strategy": e.strategy,
                    "kind": e.kind,
                    "inputs": e.inputs,
                    "context": e.context
                }
                for e in events
            ],
            "convergence_records": [
                {
                    "timestamp": r.timestamp.isoformat(),
                    "strategy": r.strategy,
                    "residual": r.residual,
                    "tolerance": r.tolerance,
                    "iterations": r.iterations,
                    "converged": r.converged
                }
                for r in records
            ]
        }

        with open(output_path, 'w') as f:
            json.dump(artifacts, f, indent=2, default=float)

        self._logger.info(f"Exported audit artifacts to {output_path}")
