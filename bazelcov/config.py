"""Configuration loading, validation and resolution.

Usage:
    config = load(".bazelcov.yaml")              # missing file -> defaults
    config = config.merge(bazel="bazelisk")      # CLI flags win
    resolved = config.resolve()                  # raises ConfigError
    generate_template(".bazelcov.yaml")          # writes example file to disk

Precedence, highest first: CLI flag, environment variable, config file,
built-in default.
"""

import os
import shutil
from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = ".bazelcov.yaml"
DEFAULT_BAZEL = "bazel"
DEFAULT_GENHTML = "genhtml"
DEFAULT_OUTPUT = "coverage-report"
#: Bazel wildcard pattern matching every target in the workspace
DEFAULT_TARGETS: tuple[str, ...] = ("//...",)

_ENV_OVERRIDES = {
    "bazel": "BAZELCOV_BAZEL",
    "genhtml": "BAZELCOV_GENHTML",
    "output": "BAZELCOV_OUTPUT",
}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is invalid or cannot be resolved."""


class ToolNotFoundError(ConfigError):
    """Raised when an executable is not found in the search path."""


# ---------------------------------------------------------------------------
# Config dataclasses
# ---------------------------------------------------------------------------

@dataclass
class ResolvedConfig:
    """Absolute executable paths, absolute report directory and final targets."""

    bazel: str
    genhtml: str
    output: str
    targets: tuple[str, ...]


@dataclass
class Config:
    bazel: str = DEFAULT_BAZEL
    genhtml: str = DEFAULT_GENHTML
    output: str = DEFAULT_OUTPUT
    targets: list[str] = field(default_factory=list)

    def merge(
        self,
        *,
        bazel: str | None = None,
        genhtml: str | None = None,
        output: str | None = None,
        targets: tuple[str, ...] | list[str] = (),
    ) -> "Config":
        """Return a copy with every explicitly given value taking precedence."""
        return replace(
            self,
            bazel=bazel if bazel is not None else self.bazel,
            genhtml=genhtml if genhtml is not None else self.genhtml,
            output=output if output is not None else self.output,
            targets=list(targets) if targets else list(self.targets),
        )

    def resolve(self) -> ResolvedConfig:
        """Look up both executables and make the output directory absolute.

        Raises:
            ToolNotFoundError: if ``bazel`` or ``genhtml`` is not on PATH.
            ConfigError:       if the output directory can't be resolved.
        """
        return ResolvedConfig(
            bazel=resolve_executable(self.bazel),
            genhtml=resolve_executable(self.genhtml),
            output=resolve_output_dir(self.output),
            targets=tuple(self.targets) or DEFAULT_TARGETS,
        )


# ---------------------------------------------------------------------------
# Resolution helpers
# ---------------------------------------------------------------------------

def resolve_executable(name: str) -> str:
    path = shutil.which(name)
    if path is None:
        raise ToolNotFoundError(f"executable '{name}' not found in PATH")
    return path


def resolve_output_dir(output: str) -> str:
    try:
        return os.path.abspath(output)
    except OSError as exc:
        # abspath needs the current directory, which may have been removed
        raise ConfigError(f"can't resolve output directory '{output}': {exc}") from exc


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load(config_path: str = DEFAULT_CONFIG_PATH) -> Config:
    """Load configuration from an optional YAML file.

    A missing file is not an error; built-in defaults apply.  Environment
    variables BAZELCOV_BAZEL, BAZELCOV_GENHTML and BAZELCOV_OUTPUT override
    file values.

    Raises:
        ConfigError: if the file is malformed or holds unknown or mistyped keys.
    """
    path = Path(config_path)
    raw: dict = {}

    if path.exists():
        try:
            with path.open(encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")

    _validate(raw, config_path)

    values = {key: raw[key] for key in ("bazel", "genhtml", "output") if key in raw}
    for key, env_var in _ENV_OVERRIDES.items():
        if os.environ.get(env_var):
            values[key] = os.environ[env_var]

    return Config(targets=list(raw.get("targets") or []), **values)


def _validate(raw: dict, config_path: str) -> None:
    """Raise ConfigError listing every problem found in *raw*."""
    errors: list[str] = []

    unknown = sorted(set(raw) - {"bazel", "genhtml", "output", "targets"})
    if unknown:
        errors.append(f"  - unknown keys: {', '.join(map(str, unknown))}")

    for key in ("bazel", "genhtml", "output"):
        if key in raw and (not isinstance(raw[key], str) or not raw[key].strip()):
            errors.append(f"  - '{key}' must be a non-empty string")

    targets = raw.get("targets")
    if targets is not None and (
        not isinstance(targets, list) or not all(isinstance(t, str) and t for t in targets)
    ):
        errors.append("  - 'targets' must be a list of Bazel target patterns")

    if errors:
        raise ConfigError(f"Invalid configuration in '{config_path}':\n" + "\n".join(errors))


# ---------------------------------------------------------------------------
# Template generator (used by `--init-config`)
# ---------------------------------------------------------------------------

TEMPLATE = """\
# Every key is optional; command-line flags take precedence.
bazel: "bazel"              # or e.g. "bazelisk"
genhtml: "genhtml"
output: "coverage-report"   # relative to the current directory

targets:
  - "//..."
"""


def generate_template(output_path: str = DEFAULT_CONFIG_PATH) -> None:
    """Write a template config file to *output_path*.

    Raises:
        ConfigError: if the file already exists.
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
