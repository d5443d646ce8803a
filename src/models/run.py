"""
CLI run state

RunState carries one command-line run (many templates) through the CLI
pipeline stages in __main__, the same way TransformState carries one
template through the transform stages.
"""

import dataclasses
from argparse import Namespace
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar


RS = TypeVar("RS", bound="RunState")


@dataclass
class RunState:
    """
    State of one CLI run.

    Pipeline stages and their state additions:
        - Initial: CLI options, inputdir, outputdir
        - env_check: envOK
        - templates_find: templates
        - templates_transform: outputs, failures
        - results_report: (terminal)

    Attributes:
        inputdir: Directory searched for templates
        outputdir: Directory receiving the generated modules
        pattern: Glob pattern selecting templates under inputdir
        scope: Root style scope passed to every transform, or None
        minimize: Minify while inlining assets
        esm: Force ES modules; when unset the configured module format applies
        verbosity: Logging verbosity level
        envOK: Environment checks passed
        templates: Template files found, relative to inputdir
        outputs: Generated module path per template
        failures: Error message per failed template
    """

    # CLI inputs
    inputdir: Path = field(default=Path("."))
    outputdir: Path = field(default=Path("."))
    pattern: str = field(default="**/*.html")
    scope: Optional[str] = field(default=None)
    minimize: bool = field(default=False)
    esm: bool = field(default=False)
    verbosity: int = field(default=1)

    # Pipeline state
    envOK: bool = field(default=False)
    templates: List[Path] = field(default_factory=list)
    outputs: Dict[Path, Path] = field(default_factory=dict)
    failures: Dict[Path, str] = field(default_factory=dict)

    def copy(self: RS) -> RS:
        return type(self)(**self.__dict__)

    @classmethod
    def state_createFromNamespace(
        cls: Type["RunState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "RunState":
        """
        Create RunState from argparse Namespace and directory paths.

        Args:
            options: Parsed CLI arguments (pattern, scope, minimize, ...)
            inputdir: Directory containing templates
            outputdir: Directory for generated modules

        Returns:
            RunState with all known CLI options as attributes
        """
        valid_fields = {f.name for f in dataclasses.fields(cls)}
        filtered_options: Dict[str, Any] = {
            k: v for k, v in vars(options).items() if k in valid_fields
        }
        return cls(**{**filtered_options, "inputdir": Path(inputdir), "outputdir": Path(outputdir)})
