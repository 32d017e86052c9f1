"""
ripgrep scanner adapter.

Runs `rg --vimgrep` as an asyncio subprocess and parses its
file:line:column:text output into Match objects.
"""

import asyncio
import logging
import os
import re
from pathlib import Path
from typing import List

from ..exceptions import AdapterError, MalformedLineError
from ..models.scan import Match, ScanOptions

logger = logging.getLogger(__name__)

# ripgrep exits 1 when nothing matched; that is not an error
_EXIT_MATCHES = 0
_EXIT_NO_MATCHES = 1
# 2 covers both fatal errors and per-file read errors alongside real matches
_EXIT_PARTIAL = 2

# Path is non-greedy so Windows drive letters ("C:\...") stay in the path
_VIMGREP_LINE = re.compile(r'^(?P<file>.+?):(?P<line>\d+):(?P<column>\d+):(?P<text>.*)$')


def parse_vimgrep_line(line: str, root: str = "") -> Match:
    """
    Parse one line of `rg --vimgrep` output.

    Relative paths are joined onto `root` so every match carries an
    absolute path.

    Raises:
        MalformedLineError: the line is not file:line:column:text
    """
    parsed = _VIMGREP_LINE.match(line.rstrip('\r\n'))
    if not parsed:
        raise MalformedLineError(line)

    file_path = parsed.group('file')
    if root and not os.path.isabs(file_path):
        file_path = os.path.join(root, file_path)

    return Match(
        file=file_path,
        line=int(parsed.group('line')),
        column=int(parsed.group('column')),
        text=parsed.group('text')
    )


def parse_vimgrep_output(output: str, root: str = "") -> List[Match]:
    """Parse full ripgrep output, silently skipping malformed lines"""
    matches = []
    for line in output.splitlines():
        if not line.strip():
            continue
        try:
            matches.append(parse_vimgrep_line(line, root))
        except MalformedLineError as e:
            logger.debug(str(e))
    return matches


class RipgrepAdapter:
    """
    Scanner adapter backed by the ripgrep CLI.

    Each invocation is a separate process; the executor guarantees only one
    runs at a time.
    """

    name = "ripgrep"

    def build_command(self, root: str, options: ScanOptions) -> List[str]:
        """Argument vector for one invocation (no shell involved)"""
        cmd = [
            str(options.executable),
            "--vimgrep",
            "--color", "never",
            "-e", options.pattern,
        ]
        for glob in options.globs:
            cmd.extend(["-g", glob])

        target = options.restrict_to_file or root
        cmd.extend(["--", target])
        return cmd

    async def invoke(self, root: str, options: ScanOptions) -> List[Match]:
        if options.restrict_to_file and not Path(options.restrict_to_file).exists():
            # Deleted file: nothing left to match
            logger.debug(f"{options.restrict_to_file} no longer exists, no matches")
            return []

        cmd = self.build_command(root, options)
        cwd = root if root and os.path.isdir(root) else None

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
            )
        except OSError as e:
            raise AdapterError(f"Failed to run {options.executable}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=options.timeout_seconds
            )
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
            raise AdapterError(
                f"ripgrep timed out after {options.timeout_seconds:g}s scanning "
                f"{options.restrict_to_file or root}"
            )

        stderr_text = stderr.decode('utf-8', errors='replace') if stderr else ""

        if process.returncode == _EXIT_NO_MATCHES:
            return []

        output = stdout.decode('utf-8', errors='replace') if stdout else ""
        base = root if not options.restrict_to_file else os.path.dirname(options.restrict_to_file)

        if process.returncode == _EXIT_MATCHES:
            return parse_vimgrep_output(output, base)

        if process.returncode == _EXIT_PARTIAL:
            matches = parse_vimgrep_output(output, base)
            if matches:
                # Some files could not be read; keep what the rest produced
                logger.warning(
                    f"ripgrep skipped files while scanning {options.restrict_to_file or root}: "
                    f"{stderr_text.strip()}"
                )
                return matches

        logger.debug(f"ripgrep exited {process.returncode}: {stderr_text}")
        raise AdapterError(
            f"ripgrep exited with code {process.returncode}",
            diagnostic_output=stderr_text
        )
