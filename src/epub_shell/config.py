import dataclasses
import json
import logging
import os
from typing import Any, Mapping, Optional

import epub_shell.settings as settings
from epub_shell.models import AppData

logger = logging.getLogger(__name__)


class Config(AppData):
    def __init__(self, filepath: Optional[str] = None):
        self._filepath = filepath
        setting_dict = dataclasses.asdict(settings.Settings())

        if os.path.isfile(self.filepath):
            with open(self.filepath) as f:
                cfg_user = json.load(f)
            setting_dict = Config.update_dict(setting_dict, cfg_user.get("Setting", {}))
        elif self.filepath != os.devnull:
            self.save({"Setting": setting_dict})

        self.setting = settings.Settings(**setting_dict)

    @property
    def filepath(self) -> str:
        if self._filepath:
            return self._filepath
        return os.path.join(self.prefix, "configuration.json") if self.prefix else os.devnull

    def save(self, cfg_dict):
        with open(self.filepath, "w") as file:
            json.dump(cfg_dict, file, indent=2)

    @staticmethod
    def update_dict(
        old_dict: Mapping[str, Any],
        new_dict: Mapping[str, Any],
        place_new=False,
    ) -> Mapping[str, Any]:
        """Returns a copy of `old_dict` after updating it with `new_dict`"""

        result = {**old_dict}
        for k, v in new_dict.items():
            if k in result or place_new:
                result[k] = v
            else:
                logger.warning("Ignoring unknown setting %r", k)

        return result
