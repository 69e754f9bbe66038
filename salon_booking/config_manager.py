# salon_booking/config_manager.py
"""
Configuration provider for multi-tenant salon settings.

Handles:
- Loading tenant configurations from JSON files ({tenants_dir}/{tenant_id}.json)
- Caching loaded configurations per tenant
- Explicit invalidation (one tenant or all)
- Saving and listing configurations (admin tooling)

Cached entries are replaced whole, never mutated in place, so readers
always see either the old or the new policy.
"""
import json
import threading
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from salon_booking.errors import ConfigurationError, TenantNotFoundError
from salon_booking.logging_config import get_logger
from salon_booking.tenant_config import ServiceConfig, TenantConfig, WorkingHours

logger = get_logger(__name__)


class TenantConfigProvider:
    """Owns the tenant_id -> TenantConfig mapping."""

    def __init__(self, config_dir: str):
        """
        Initialize provider.

        Args:
            config_dir: Directory holding one JSON file per tenant
        """
        self.config_dir = Path(config_dir)
        self._cache: Dict[str, TenantConfig] = {}
        self._lock = threading.Lock()

    def _get_config_path(self, tenant_id: str) -> Path:
        """Get file path for tenant config."""
        # Sanitize tenant_id to prevent path traversal
        safe_tenant_id = tenant_id.replace("/", "_").replace("\\", "_").replace("..", "_")
        return self.config_dir / f"{safe_tenant_id}.json"

    def load(self, tenant_id: str) -> TenantConfig:
        """
        Read and validate a tenant file, then replace the cached entry.

        Raises:
            TenantNotFoundError: If no file exists for tenant_id
            ConfigurationError: If the file is not valid JSON or fails validation
        """
        path = self._get_config_path(tenant_id)

        if not path.exists():
            raise TenantNotFoundError(tenant_id)

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error("tenant_config_invalid_json", tenant_id=tenant_id, error=str(e))
            raise ConfigurationError(
                f"Failed to load tenant config for {tenant_id}: {e}"
            ) from e

        try:
            config = TenantConfig(**data)
        except ValidationError as e:
            logger.error("tenant_config_invalid", tenant_id=tenant_id, error=str(e))
            raise ConfigurationError(
                f"Invalid tenant config for {tenant_id}: {e.errors()[0]['msg']}"
            ) from e

        if config.tenant_id != tenant_id:
            logger.error(
                "tenant_config_id_mismatch",
                expected=tenant_id,
                actual=config.tenant_id
            )
            raise ConfigurationError(
                f"Tenant ID mismatch: expected {tenant_id}, got {config.tenant_id}"
            )

        with self._lock:
            self._cache[tenant_id] = config

        logger.info("tenant_config_loaded", tenant_id=tenant_id, services=len(config.services))
        return config

    def get_policy(self, tenant_id: str) -> TenantConfig:
        """
        Cached tenant configuration, loading it on first use.

        Raises:
            TenantNotFoundError / ConfigurationError: see load()
        """
        with self._lock:
            config = self._cache.get(tenant_id)
        if config is not None:
            return config
        return self.load(tenant_id)

    def get_working_hours(self, tenant_id: str, day_name: str) -> WorkingHours:
        return self.get_policy(tenant_id).get_working_hours(day_name)

    def get_service(self, tenant_id: str, service_id: str) -> Optional[ServiceConfig]:
        return self.get_policy(tenant_id).get_service(service_id)

    def is_blocked_date(self, tenant_id: str, day: str) -> bool:
        return self.get_policy(tenant_id).is_blocked_date(day)

    def invalidate(self, tenant_id: Optional[str] = None) -> None:
        """
        Drop cached configuration.

        Args:
            tenant_id: Specific tenant to clear, or None to clear all
        """
        with self._lock:
            if tenant_id:
                self._cache.pop(tenant_id, None)
            else:
                self._cache.clear()
        logger.info("tenant_config_invalidated", tenant_id=tenant_id or "*")

    def save_config(self, config: TenantConfig) -> None:
        """
        Write a tenant configuration file and invalidate its cache entry.

        Args:
            config: Tenant configuration to save
        """
        self.config_dir.mkdir(parents=True, exist_ok=True)
        path = self._get_config_path(config.tenant_id)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(
                config.model_dump(mode="json", exclude_none=True),
                f,
                indent=2,
                ensure_ascii=False
            )

        self.invalidate(config.tenant_id)

    def config_exists(self, tenant_id: str) -> bool:
        return self._get_config_path(tenant_id).exists()

    def list_tenants(self) -> List[str]:
        """
        List all tenant IDs with configuration files.

        Returns:
            Sorted list of tenant IDs
        """
        if not self.config_dir.exists():
            return []
        return sorted(path.stem for path in self.config_dir.glob("*.json"))
