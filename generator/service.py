"""Invocation of the external source generator.

The generator receives one package per call together with the message and
service definition files and the middleware's templates, and writes its
translation units under ``<source-dir>/msg`` and ``<source-dir>/srv``. Any
text on its error channel is fatal for the run; whatever it produced before
failing is discarded.
"""
from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple

from common.errors import ConfigurationError, GenerationFailed
from common.logging import get_logger, log_status
from common.paths import ensure_dir

LOGGER = get_logger(__name__)

SOURCE_SUFFIXES = (".cpp", ".cc", ".cxx")
SOURCE_SUBDIRS = ("msg", "srv")


@dataclass(frozen=True)
class GenerationRequest:
    package: str
    source_dir: Path
    header_dir: Path
    include_dir: Path
    msg_files: Tuple[Path, ...] = ()
    msg_cpp_templates: Tuple[Path, ...] = ()
    msg_hpp_templates: Tuple[Path, ...] = ()
    srv_files: Tuple[Path, ...] = ()
    srv_cpp_templates: Tuple[Path, ...] = ()
    srv_hpp_templates: Tuple[Path, ...] = ()
    file_dependencies: Tuple[Path, ...] = field(default=(), compare=False)

    def to_args(self) -> List[str]:
        args = [
            "--package",
            self.package,
            "--source-dir",
            str(self.source_dir),
            "--header-dir",
            str(self.header_dir),
        ]
        for flag, values in (
            ("--msg-idl-files", self.msg_files),
            ("--msg-cpp-files", self.msg_cpp_templates),
            ("--msg-hpp-files", self.msg_hpp_templates),
            ("--srv-idl-files", self.srv_files),
            ("--srv-cpp-files", self.srv_cpp_templates),
            ("--srv-hpp-files", self.srv_hpp_templates),
        ):
            args.append(flag)
            args.extend(str(value) for value in values)
        return args


@dataclass(frozen=True)
class GeneratorOutput:
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0


@dataclass
class GeneratedSources:
    source_files: List[Path]
    include_dir: Optional[Path]


class SourceGenerator(Protocol):
    def generate(self, request: GenerationRequest) -> GeneratorOutput:
        """Write sources for ``request`` and report what the tool printed."""


class ScriptGenerator:
    """Runs ``<interpreter> <generate-script> --package ...``."""

    def __init__(self, interpreter: str, script: Path | None, *, timeout: float | None = None) -> None:
        self.interpreter = interpreter
        self.script = script
        self.timeout = timeout

    def generate(self, request: GenerationRequest) -> GeneratorOutput:
        if self.script is None:
            raise ConfigurationError(
                "No generate script configured; set generate_script or MIX_GENERATE_SCRIPT"
            )
        cmd = [self.interpreter, str(self.script), *request.to_args()]
        LOGGER.debug("Running command: %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise ConfigurationError(f"Generator is not runnable: {' '.join(cmd)}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ConfigurationError(
                f"Generator timed out after {self.timeout}s for {request.package}"
            ) from exc
        return GeneratorOutput(stdout=proc.stdout or "", stderr=proc.stderr or "", returncode=proc.returncode)


def generate_sources(
    generator: SourceGenerator,
    request: GenerationRequest,
    *,
    middleware: str,
    quiet: bool = False,
) -> GeneratedSources:
    ensure_dir(request.source_dir)
    ensure_dir(request.header_dir)
    output = generator.generate(request)
    if output.stdout.strip():
        log_status(
            LOGGER,
            quiet,
            "Output from generating %s source files for %s:\n%s",
            middleware,
            request.package,
            output.stdout.rstrip(),
        )
    error = output.stderr.strip()
    if error or output.returncode != 0:
        _discard(request)
        raise GenerationFailed(
            middleware,
            request.package,
            error or f"generator exited with status {output.returncode}",
            returncode=output.returncode,
        )
    include_dir = request.include_dir if request.include_dir.is_dir() else None
    return GeneratedSources(source_files=collect_sources(request.source_dir), include_dir=include_dir)


def collect_sources(source_dir: Path, subdirs: Sequence[str] = SOURCE_SUBDIRS) -> List[Path]:
    sources: List[Path] = []
    for subdir in subdirs:
        directory = source_dir / subdir
        if not directory.is_dir():
            continue
        for path in sorted(directory.iterdir()):
            if path.is_file() and path.suffix in SOURCE_SUFFIXES:
                sources.append(path)
    return sources


def _discard(request: GenerationRequest) -> None:
    for directory in (request.source_dir, request.include_dir):
        if directory.exists():
            LOGGER.debug("Discarding partial generator output in %s", directory)
            shutil.rmtree(directory)


__all__ = [
    "GeneratedSources",
    "GenerationRequest",
    "GeneratorOutput",
    "ScriptGenerator",
    "SourceGenerator",
    "collect_sources",
    "generate_sources",
]
