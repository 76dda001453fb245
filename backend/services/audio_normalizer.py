# backend/services/audio_normalizer.py
import os
import subprocess
import logging

log = logging.getLogger(__name__)


class AudioNormalizationError(Exception):
    pass


def converted_path_for(src_path: str) -> str:
    stem = os.path.splitext(os.path.basename(src_path))[0]
    return os.path.join(os.path.dirname(src_path), f"converted-{stem}.wav")


def build_ffmpeg_command(src_path: str, dst_path: str, ffmpeg_binary: str = "ffmpeg") -> list[str]:
    return [
        ffmpeg_binary,
        "-y",
        "-i", src_path,
        "-vn",                  # drop video
        "-ac", "1",
        "-ar", "16000",
        "-b:a", "128k",
        "-f", "wav",
        dst_path,
    ]


def _discard(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        log.warning("Error deleting partial audio file %s: %s", path, e)


def normalize_audio(src_path: str, ffmpeg_binary: str = "ffmpeg") -> str:
    """
    Use ffmpeg to transcode any input audio to 16k mono WAV.
    Returns path to the wav file (next to the source, prefixed "converted-").
    """
    wav_path = converted_path_for(src_path)
    cmd = build_ffmpeg_command(src_path, wav_path, ffmpeg_binary)
    try:
        completed = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except OSError as e:
        raise AudioNormalizationError(f"ffmpeg could not be started: {e}") from e

    if completed.returncode != 0 or not os.path.exists(wav_path) or os.path.getsize(wav_path) == 0:
        _discard(wav_path)
        raise AudioNormalizationError(f"ffmpeg failed: {completed.stderr.decode(errors='ignore')[:300]}")

    log.info("Converted audio to %s", wav_path)
    return wav_path
