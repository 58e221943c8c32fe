"""Text-to-speech through an external command (``say`` by default)."""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

from voice_hooks.core.errors import UpstreamFailure
from voice_hooks.core.logger import get_logger

logger = get_logger("speech")


class Speaker:
    """Runs the configured TTS command once per utterance."""

    def __init__(
        self,
        command: Sequence[str] = ("say",),
        rate_flag: str = "-r",
        timeout: float = 60.0,
    ) -> None:
        self.command = list(command)
        self.rate_flag = rate_flag
        self.timeout = timeout

    def build_argv(self, text: str, rate: Optional[int] = None) -> list[str]:
        argv = list(self.command)
        if rate is not None and self.rate_flag:
            argv += [self.rate_flag, str(rate)]
        argv.append(text)
        return argv

    async def speak(self, text: str, rate: Optional[int] = None) -> None:
        argv = self.build_argv(text, rate)
        logger.info("Speaking", extra={"chars": len(text), "rate": rate})
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.error("TTS command unavailable", extra={"command": argv[0], "error": str(exc)})
            raise UpstreamFailure(f"Failed to speak: {exc}") from exc

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            logger.warning("TTS command timed out", extra={"timeout": self.timeout})
            raise UpstreamFailure("Failed to speak: speech command timed out") from exc

        if process.returncode != 0:
            detail = (stderr or b"").decode("utf-8", errors="replace").strip()
            logger.error("TTS command failed", extra={"returncode": process.returncode, "stderr": detail})
            raise UpstreamFailure(f"Failed to speak: {detail or f'exit code {process.returncode}'}")
