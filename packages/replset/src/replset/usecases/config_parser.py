"""Config parser use case for replica set settings."""

from typing import Any

import yaml

from replset.domain.exceptions import ReplicaSetConfigError
from replset.domain.membership import SecurityData
from replset.domain.retry import (
    DEFAULT_CONNECT_BUDGET,
    DEFAULT_INIT_BUDGET,
    DEFAULT_PORT,
    DEFAULT_RECONFIG_BUDGET,
    RetryBudget,
)
from replset.domain.settings import ReplicaSetSettings


class ConfigParser:
    """Parses replica set YAML configuration to settings.

    Expected document::

        replica_set:
          key: rs0
          name: rs0
          seeds: ["10.0.0.1:27017", "10.0.0.2:27017"]
          port: 27017              # optional
          local_address: 127.0.0.1 # optional
        security:
          admin_user: admin
          admin_password: secret
        timing:                    # optional, per budget
          connect: {attempts: 60, wait_seconds: 10}
          init: {attempts: 60, wait_seconds: 3}
          reconfig: {attempts: 10, wait_seconds: 10}
    """

    def parse(self, yaml_str: str) -> ReplicaSetSettings:
        """Parse replica set YAML config to settings.

        Args:
            yaml_str: YAML string representing the replica set configuration

        Returns:
            ReplicaSetSettings domain object

        Raises:
            ReplicaSetConfigError: If YAML is invalid or required fields are missing
        """
        try:
            config = yaml.safe_load(yaml_str)
        except yaml.YAMLError as e:
            raise ReplicaSetConfigError(f"Invalid YAML: {e}") from e

        if not isinstance(config, dict):
            raise ReplicaSetConfigError("Config must be a dictionary")

        try:
            replica_set = config["replica_set"]
            security = config["security"]
            key = replica_set["key"]
            admin_user = security["admin_user"]
            admin_password = security["admin_password"]
        except (KeyError, TypeError) as e:
            raise ReplicaSetConfigError(f"Missing required field in config: {e}") from e

        seeds = replica_set.get("seeds") or []
        if not isinstance(seeds, list):
            raise ReplicaSetConfigError("replica_set.seeds must be a list")

        timing = config.get("timing") or {}
        if not isinstance(timing, dict):
            raise ReplicaSetConfigError("timing must be a dictionary")

        return ReplicaSetSettings(
            key=str(key),
            # The expected name defaults to the key this node would initiate with.
            name=str(replica_set.get("name", key)),
            security=SecurityData(
                admin_user=str(admin_user),
                admin_password=str(admin_password),
            ),
            seeds=tuple(str(seed) for seed in seeds),
            port=int(replica_set.get("port", DEFAULT_PORT)),
            local_address=str(replica_set.get("local_address", "127.0.0.1")),
            connect_budget=self._parse_budget(timing, "connect", DEFAULT_CONNECT_BUDGET),
            init_budget=self._parse_budget(timing, "init", DEFAULT_INIT_BUDGET),
            reconfig_budget=self._parse_budget(timing, "reconfig", DEFAULT_RECONFIG_BUDGET),
        )

    def _parse_budget(
        self, timing: dict[str, Any], name: str, default: RetryBudget
    ) -> RetryBudget:
        """Parse one optional retry budget, falling back to ``default`` per field."""
        section = timing.get(name)
        if section is None:
            return default

        if not isinstance(section, dict):
            raise ReplicaSetConfigError(f"timing.{name} must be a dictionary")

        try:
            return RetryBudget(
                attempts=int(section.get("attempts", default.attempts)),
                wait_seconds=float(section.get("wait_seconds", default.wait_seconds)),
            )
        except (TypeError, ValueError) as e:
            raise ReplicaSetConfigError(f"Invalid timing.{name}: {e}") from e
