"""Running the R executable: version lookup, library lookup and package installs."""

from __future__ import annotations

import logging
import os
import platform
import re
import shutil
import signal
import subprocess
import sys
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from rvtool.version import Version

logger = logging.getLogger(__name__)

_R_VERSION_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)")
_POLL_INTERVAL = 0.1
_IS_WINDOWS = os.name == "nt"

# R processes run in their own process group, so they do not die with us;
# their pids are kept here so they can be killed on demand.
_ACTIVE_PIDS: set[int] = set()
_ACTIVE_PIDS_LOCK = threading.Lock()


class InstallError(Exception):
    """Raised when ``R CMD INSTALL`` cannot run or fails.

    ``output`` holds the combined output of R when the installation itself failed.
    """

    def __init__(self, message: str, output: str | None = None) -> None:
        super().__init__(message)
        self.output = output


class VersionError(Exception):
    """Raised when the version of R cannot be determined or does not match."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to get R version: {reason}")
        self.reason = reason


class LibraryError(Exception):
    """Raised when the library of the R installation cannot be found."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to get R library: {reason}")
        self.reason = reason


def find_r_version(output: str) -> Version | None:
    """Extract the first ``X.Y.Z`` version from the output of ``R --version``."""
    match = _R_VERSION_RE.search(output)
    if match is None:
        return None
    try:
        return Version.parse(match.group(0))
    except ValueError:
        return None


def _register_pid(pid: int) -> None:
    with _ACTIVE_PIDS_LOCK:
        _ACTIVE_PIDS.add(pid)


def _unregister_pid(pid: int) -> None:
    with _ACTIVE_PIDS_LOCK:
        _ACTIVE_PIDS.discard(pid)


def kill_all_r_processes() -> None:
    """Terminate every R process started by an install that is still running."""
    with _ACTIVE_PIDS_LOCK:
        pids = list(_ACTIVE_PIDS)
    for pid in pids:
        if _IS_WINDOWS:
            subprocess.run(
                ["taskkill", "/PID", str(pid), "/F"],
                capture_output=True,
                check=False,
            )
        else:
            try:
                os.kill(pid, signal.SIGTERM)
            except (ProcessLookupError, PermissionError):
                pass


def _link_tree(source: Path, target: Path) -> None:
    """Mirror ``source`` into ``target``, symlinking files where possible."""
    for root, dirs, files in os.walk(source):
        relative = Path(root).relative_to(source)
        destination_dir = target / relative
        for name in dirs:
            (destination_dir / name).mkdir(parents=True, exist_ok=True)
        for name in files:
            src_file = Path(root, name)
            dst_file = destination_dir / name
            if not _IS_WINDOWS:
                try:
                    os.symlink(src_file.resolve(), dst_file)
                    continue
                except OSError:
                    pass
            shutil.copy2(src_file, dst_file)


def _decode_output(data: bytes, reason_cls: type[Exception]) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise reason_cls(str(exc)) from exc


@dataclass(frozen=True)
class RCommandLine:
    """The R executable to use; ``r=None`` means ``R`` on the PATH."""

    r: Path | None = None

    @property
    def _executable(self) -> str:
        return str(self.r) if self.r is not None else "R"

    def _run(self, arg: str) -> subprocess.CompletedProcess[bytes]:
        return subprocess.run(
            [self._executable, arg], capture_output=True, check=False
        )

    def install(
        self,
        source_folder: str | os.PathLike[str],
        library: str | os.PathLike[str],
        destination: str | os.PathLike[str],
        cancellation: Any = None,
        env_vars: Mapping[str, str] | None = None,
    ) -> str:
        """Run ``R CMD INSTALL`` on ``source_folder`` into ``destination``.

        Returns the combined stdout and stderr of R. ``cancellation``, if given,
        must offer ``is_soft_cancellation()``; on a soft cancellation the running
        install is allowed to finish.
        """
        source_folder = Path(source_folder)
        library = Path(library)
        destination = Path(destination)

        # Start from a clean destination, unless installing into the library itself.
        if library != destination:
            try:
                if destination.is_dir():
                    shutil.rmtree(destination)
                destination.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise InstallError(f"IO error: {exc} ({destination})") from exc

        with tempfile.TemporaryDirectory() as tmp:
            build_dir = Path(tmp)
            # Compilation leaves artifacts behind; keep them out of the cache.
            try:
                _link_tree(source_folder, build_dir)
            except OSError as exc:
                raise InstallError(
                    f"Failed to create or copy files to temp directory: {exc}"
                ) from exc

            try:
                library = library.resolve(strict=True)
            except OSError as exc:
                raise InstallError(f"Command failed: {exc}") from exc

            env = dict(os.environ)
            env["R_LIBS_SITE"] = str(library)
            env["R_LIBS_USER"] = str(library)
            env["_R_SHLIB_STRIP_"] = "true"
            env.update(env_vars or {})
            logger.debug(
                "Compiling %s with env vars: %s",
                source_folder,
                " ".join(
                    f"{key}={env[key]}"
                    for key in ("R_LIBS_SITE", "R_LIBS_USER", "_R_SHLIB_STRIP_", *(env_vars or {}))
                ),
            )

            args = [
                self._executable,
                "CMD",
                "INSTALL",
                f"--library={destination}",
                "--use-vanilla",
                "--strip",
                "--strip-lib",
                str(build_dir),
            ]
            isolation: dict[str, Any] = (
                {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}
                if _IS_WINDOWS
                else {"start_new_session": True}
            )
            try:
                process = subprocess.Popen(
                    args,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    env=env,
                    **isolation,
                )
            except OSError as exc:
                raise InstallError(f"Command failed: {exc}") from exc

            pid = process.pid
            _register_pid(pid)

            chunks: list[bytes] = []

            def _read() -> None:
                assert process.stdout is not None
                chunks.append(process.stdout.read())
                process.stdout.close()

            reader = threading.Thread(target=_read, daemon=True)
            reader.start()

            while True:
                status = process.poll()
                if status is None:
                    if cancellation is not None and cancellation.is_soft_cancellation():
                        status = process.wait()
                    else:
                        time.sleep(_POLL_INTERVAL)
                        continue
                _unregister_pid(pid)
                reader.join()
                output = b"".join(chunks).decode("utf-8", errors="replace")
                if status != 0:
                    self._cleanup_failed(destination)
                    raise InstallError(f"Installation failed: {output}", output=output)
                return output

    @staticmethod
    def _cleanup_failed(destination: Path) -> None:
        if destination.is_dir():
            try:
                shutil.rmtree(destination)
            except OSError as exc:
                logger.error(
                    "Failed to remove directory `%s` after R CMD INSTALL failed: %s. "
                    "Delete this folder manually",
                    destination,
                    exc,
                )

    def get_r_library(self) -> Path:
        """The ``library`` folder of this R installation."""
        try:
            completed = self._run("RHOME")
        except OSError as exc:
            raise LibraryError(str(exc)) from exc
        raw = completed.stderr if _IS_WINDOWS else completed.stdout
        text = _decode_output(raw, LibraryError)
        lib_path = Path(text.strip()) / "library"
        if lib_path.is_dir():
            return lib_path
        raise LibraryError("Library for current R not found")

    def version(self) -> Version:
        """The version reported by ``R --version``."""
        try:
            completed = self._run("--version")
        except OSError as exc:
            raise VersionError(str(exc)) from exc
        # R.bat on Windows writes its output to stderr.
        raw = completed.stderr if _IS_WINDOWS else completed.stdout
        text = _decode_output(raw, VersionError)
        found = find_r_version(text)
        if found is None:
            raise VersionError("Version not found in R --version output")
        return found


def _mac_arch() -> str | None:
    machine = platform.machine()
    return machine or None


def find_r_version_command(r_version: Version) -> RCommandLine:
    """Find an R executable whose version matches ``r_version``.

    The R on the PATH is preferred, then rig-style executables, then
    installations under ``/opt/R``. Raises ``VersionError`` otherwise.
    """
    found: list[str] = []

    try:
        path_r = RCommandLine().version()
    except VersionError:
        path_r = None
    if path_r is not None:
        if r_version.hazy_match(path_r):
            logger.debug("R %s found on the path", r_version)
            return RCommandLine()
        found.append(path_r.original)

    if sys.platform == "darwin":
        arch = _mac_arch()
        if arch is not None:
            major, minor = r_version.major_minor()
            rig = RCommandLine(Path(f"R-{major}.{minor}-{arch}"))
            try:
                rig_version = rig.version()
            except VersionError:
                rig_version = None
            if rig_version is not None:
                if r_version.hazy_match(rig_version):
                    logger.debug("R %s found on the path via rig pattern", r_version)
                    return RCommandLine()
                found.append(rig_version.original)

    if _IS_WINDOWS:
        rig = RCommandLine(Path("R.bat"))
        try:
            rig_version = rig.version()
        except VersionError:
            rig_version = None
        if rig_version is not None:
            if r_version.hazy_match(rig_version):
                logger.debug("R %s found on the path from `rig`", r_version)
                return rig
            found.append(rig_version.original)

    opt_r = Path("/opt/R")
    if opt_r.is_dir():
        try:
            entries = list(opt_r.iterdir())
        except OSError as exc:
            raise VersionError(str(exc)) from exc
        for entry in entries:
            candidate = entry / "bin" / "R"
            if not candidate.exists():
                continue
            command = RCommandLine(candidate)
            try:
                candidate_version = command.version()
            except VersionError:
                continue
            if r_version.hazy_match(candidate_version):
                logger.debug("R %s found at %s", r_version, candidate)
                return command
            found.append(candidate_version.original)

    if not found:
        raise VersionError("R not found on system")
    available = ", ".join(sorted(set(found)))
    raise VersionError(
        f"Specified R version ({r_version.original}) does not match any available "
        f"versions found on the system ({available})"
    )