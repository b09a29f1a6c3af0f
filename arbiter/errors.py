from __future__ import annotations


class ArbiterError(Exception):
    """Base class for every failure the agent surfaces."""


class FetchError(ArbiterError):
    """The pool feed could not be retrieved."""


class NetworkError(FetchError):
    def __init__(self, url: str, reason: str):
        super().__init__(f"request to {url} failed: {reason}")
        self.url = url
        self.reason = reason


class StatusError(FetchError):
    def __init__(self, url: str, status_code: int):
        super().__init__(f"{url} returned HTTP {status_code}")
        self.url = url
        self.status_code = status_code


class ParseError(ArbiterError):
    """Malformed or schema-mismatched JSON from the feed or the prover."""

    def __init__(self, source: str, detail: str):
        super().__init__(f"invalid {source} payload: {detail}")
        self.source = source
        self.detail = detail


class ProverError(ArbiterError):
    """The external proof generator did not produce a proof."""


class ProcessSpawnError(ProverError):
    def __init__(self, command: str, reason: str):
        super().__init__(f"could not start prover `{command}`: {reason}")
        self.command = command
        self.reason = reason


class ProverExecutionError(ProverError):
    def __init__(self, returncode: int, stderr: str):
        message = stderr.strip() or "<no stderr>"
        super().__init__(f"prover exited with status {returncode}: {message}")
        self.returncode = returncode
        self.stderr = stderr


class ProverTimeoutError(ProverError):
    def __init__(self, timeout: float):
        super().__init__(f"prover did not finish within {timeout:g}s")
        self.timeout = timeout


class PipelineError(ArbiterError):
    """Wraps a component failure with the pipeline stage that raised it."""

    def __init__(self, stage: str, cause: Exception):
        super().__init__(f"{stage} stage failed: {cause}")
        self.stage = stage
        self.cause = cause
