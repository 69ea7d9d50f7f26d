"""
Add C2PA manifests to files with the c2patool CLI.

Two builds of the tool are supported: the public c2patool from
contentauth/c2pa-rs and the internal build, which takes an add-manifest
subcommand and needs a bearer token from the identity service. Commands are
built as argument vectors and run without a shell.

On success the tool prints the resulting manifest store as JSON on stdout.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .auth import exchange_service_token
from .config import SignParams, WorkerConfig
from .errors import AuthAttachmentError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def build_add_manifest_command(file_to_process: PathLike, manifest_path: PathLike,
                               parent_asset: Optional[PathLike] = None,
                               sign_params: Optional[SignParams] = None,
                               config: Optional[WorkerConfig] = None) -> List[str]:
    """
    Build the c2patool argv that embeds a manifest into a file in place.

    Args:
        file_to_process: File to sign; also the output path
        manifest_path: JSON manifest definition to embed
        parent_asset: Optional parent asset, referenced as an ingredient
        sign_params: Selects the internal tool when use_internal_tooling is set
        config: Worker configuration holding the tool names

    Returns:
        Argument vector suitable for subprocess.run
    """
    config = config or WorkerConfig()
    sign_params = sign_params or SignParams()
    file_to_process = str(file_to_process)
    manifest_path = str(manifest_path)

    if sign_params.use_internal_tooling:
        cmd = [
            config.internal_cli, "add-manifest",
            "--input", file_to_process,
            "--embed",
            "--config", manifest_path,
            "--force",
            "--output", file_to_process,
        ]
        if parent_asset:
            cmd += ["--parent", str(parent_asset)]
    else:
        cmd = [
            config.public_cli, file_to_process,
            "--manifest", manifest_path,
            "-f",
            "-o", file_to_process,
        ]
        if parent_asset:
            cmd += ["-p", str(parent_asset)]

    return cmd


def add_auth_to_command(cmd: List[str], sign_params: Optional[SignParams],
                        config: WorkerConfig) -> List[str]:
    """Append the identity token flag when the internal tool is used."""
    if sign_params is None or not sign_params.use_internal_tooling:
        return list(cmd)

    token = exchange_service_token(sign_params, config)
    return list(cmd) + [config.internal_auth_flag, token]


def _redact(cmd: List[str], config: WorkerConfig) -> str:
    shown = list(cmd)
    for i, arg in enumerate(shown[:-1]):
        if arg == config.internal_auth_flag:
            shown[i + 1] = "***"
    return " ".join(shown)


def execute_json_output_command(cmd: List[str], config: Optional[WorkerConfig] = None) -> Optional[Any]:
    """
    Run a command and parse its stdout as JSON.

    Args:
        cmd: Argument vector to execute
        config: Worker configuration holding the CLI timeout

    Returns:
        Parsed JSON, or None if the command failed, timed out, printed
        nothing, or printed something other than JSON
    """
    config = config or WorkerConfig()
    logger.debug(f"Running: {_redact(cmd, config)}")

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=True,
            timeout=config.cli_timeout
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"Timeout running {cmd[0]}")
        return None
    except subprocess.CalledProcessError as e:
        logger.warning(f"{cmd[0]} failed with exit code {e.returncode}: {e.stderr}")
        return None
    except OSError as e:
        logger.warning(f"Unable to run {cmd[0]}: {e}")
        return None

    stdout = (result.stdout or "").strip()
    if not stdout:
        return None

    try:
        return json.loads(stdout)
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON from {cmd[0]}: {e}")
        return None


def add_c2pa_manifest(file_to_process: PathLike, manifest_path: PathLike,
                      parent_asset: Optional[PathLike] = None,
                      sign_params: Optional[SignParams] = None,
                      config: Optional[WorkerConfig] = None) -> Optional[Dict[str, Any]]:
    """
    Embed a manifest definition into a file with c2patool.

    Returns:
        The tool's JSON result when it is a non-empty object, otherwise None

    Raises:
        AuthAttachmentError: The internal tool was requested but no token
            could be obtained
    """
    config = config or WorkerConfig()
    cmd = build_add_manifest_command(file_to_process, manifest_path, parent_asset,
                                     sign_params, config)
    try:
        cmd = add_auth_to_command(cmd, sign_params, config)
    except Exception as e:
        raise AuthAttachmentError("Failed to add auth to C2PA command") from e

    json_result = execute_json_output_command(cmd, config)
    if isinstance(json_result, dict) and json_result:
        return json_result
    return None
