"""
Push bot configuration, models, style and terms into a MyCloud deployment.

Remote delivery invokes the stack's setconf function. Local delivery pipes
the same payload into `serverless invoke local` inside a project directory.
"""

import json
import logging
import subprocess
from pathlib import Path

from .constants import SETCONF_FUNCTION
from .errors import ConfigurationError, ProviderOperationFailed
from .notify import get_function_name, invoke

logger = logging.getLogger(__name__)

DEPLOY_ITEMS = ("bot", "models", "style", "terms")
NODE_FLAGS = ("inspect", "debug", "debug-brk")

TERMS_FILE = "terms-and-conditions.md"


def read_json(path: Path):
    with open(path) as f:
        return json.load(f)


def get_namespace(model_id: str) -> str:
    """Namespace of a model id, e.g. 'com.example.Form' -> 'com.example'."""
    namespace, _, _ = model_id.rpartition(".")
    return namespace or model_id


def pack_models(models: dict, lenses: dict = None) -> dict:
    pack = {}
    if models:
        pack["namespace"] = get_namespace(next(iter(models)))
        pack["models"] = list(models.values())
    if lenses:
        pack["lenses"] = list(lenses.values())
    return pack


def load_items(conf_dir: Path, items) -> dict:
    """Assemble the payload for the requested items from conf_dir."""
    conf_dir = Path(conf_dir)
    items = set(items)
    unknown = items - set(DEPLOY_ITEMS)
    if unknown:
        raise ConfigurationError(f"Unknown item(s): {', '.join(sorted(unknown))}")

    payload = {}
    if "style" in items:
        payload["style"] = read_json(conf_dir / "style.json")

    if "terms" in items:
        payload["terms"] = (conf_dir / TERMS_FILE).read_text()

    if "models" in items:
        models_path = conf_dir / "models.json"
        lenses_path = conf_dir / "lenses.json"
        payload["modelsPack"] = pack_models(
            read_json(models_path) if models_path.exists() else {},
            read_json(lenses_path) if lenses_path.exists() else None,
        )

    if "bot" in items:
        payload["bot"] = read_json(conf_dir / "bot.json")

    return payload


def deploy_remote(lambda_client, stack_name: str, payload: dict) -> str:
    function_name = get_function_name(stack_name, SETCONF_FUNCTION)
    logger.info("invoking %s with: %s", function_name, ", ".join(payload))
    return invoke(lambda_client, function_name, payload)


def build_local_command(node_flags: dict = None) -> str:
    flags = dict(node_flags or {})
    if not flags.get("inspect") and (flags.get("debug") or flags.get("debug-brk")):
        flags["inspect"] = True

    rendered = []
    for key in NODE_FLAGS:
        value = flags.get(key)
        if value is True:
            rendered.append(f"--{key}")
        elif value:
            rendered.append(f'--{key}="{value}"')

    node = " ".join(["node"] + rendered)
    return f"IS_OFFLINE=1 {node} $(command -v serverless) invoke local -f {SETCONF_FUNCTION}"


def deploy_local(payload: dict, project_dir: str | None, node_flags: dict = None) -> str:
    """Run setconf in a local serverless project."""
    if not project_dir:
        raise ConfigurationError(
            'expected "project_dir", the path to your local serverless project'
        )

    command = build_local_command(node_flags)
    logger.info("running in %s: %s", project_dir, command)
    result = subprocess.run(
        command,
        shell=True,
        cwd=project_dir,
        input=json.dumps(payload),
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        raise ProviderOperationFailed(
            "Local setconf failed",
            result.stderr.strip() or f"failed with code {result.returncode}",
        )
    return result.stdout


def deploy(
    payload: dict,
    stack_name: str = None,
    lambda_client=None,
    local: bool = False,
    project_dir: str = None,
    node_flags: dict = None,
) -> str:
    if local:
        return deploy_local(payload, project_dir, node_flags)
    if not stack_name:
        raise ConfigurationError("stack_name is required for remote setconf")
    return deploy_remote(lambda_client, stack_name, payload)
