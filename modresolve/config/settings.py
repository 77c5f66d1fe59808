from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import structlog

from modresolve.core.models import Action, Step

log = structlog.get_logger(__name__)

class OutputFormat(Enum):
    # how `modresolve find` reports its results.
    TABLE = "table"
    JSON = "json"

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["OutputFormat"]:
        if not s:
            return None
        try:
            return cls(s.lower())
        except ValueError:
            log.warning("invalid_output_format_string", input_string=s)
            return None

DEFAULT_OUTPUT_FORMAT = OutputFormat.TABLE
MODULEPATH_ENV_VAR = "MODULEPATH"
LOADEDMODULES_ENV_VAR = "LOADEDMODULES"
PREFER_LATEST_ENV_VAR = "MODRESOLVE_LATEST"

@dataclass
class ResolverConfig:
    # holds all configuration parameters for a single run.
    module_path: List[Path] = field(default_factory=list)
    loaded_modules: List[str] = field(default_factory=list)
    prefer_latest: bool = False
    action: Optional[Action] = None
    steps: Dict[Action, Tuple[Step, ...]] = field(default_factory=dict)
    output_format: OutputFormat = DEFAULT_OUTPUT_FORMAT

    def effective_action(self) -> Action:
        # an explicit action wins over the prefer-latest setting.
        if self.action is not None:
            return self.action
        return Action.LATEST if self.prefer_latest else Action.MATCH
