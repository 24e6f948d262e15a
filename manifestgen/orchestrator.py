"""Run context tying one org connection to its builders and caches."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Mapping, Optional, Sequence

from .config import BuildConfig, ManifestDefaults, ManifestGenConfig
from .gateway import GatewayError, HttpMetadataGateway, MetadataGateway
from .logging import get_logger
from .manifest import CatalogUnavailable, ManifestDocument, PackageBuilder
from .retriever import EntityDefinitionRetriever, FieldRetriever, LocalComponentIndex


class Orchestrator:
    """Owns the gateway plus every cache scoped to it.

    Caches live exactly as long as the orchestrator, so separate runs in a
    long-lived process do not share state unless they share an instance.
    """

    def __init__(
        self,
        gateway: MetadataGateway,
        *,
        local_components: LocalComponentIndex | None = None,
        package_builder: PackageBuilder | None = None,
        manifest_defaults: ManifestDefaults | None = None,
    ) -> None:
        self.gateway = gateway
        self.manifest_defaults = manifest_defaults or ManifestDefaults()
        self.local_components = local_components or LocalComponentIndex()
        self.package_builder = package_builder or PackageBuilder(gateway)
        self.entities = EntityDefinitionRetriever(gateway)
        self.fields = FieldRetriever(
            gateway, entities=self.entities, local_components=self.local_components
        )
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_config(
        cls,
        config: ManifestGenConfig,
        *,
        local_components: LocalComponentIndex | None = None,
    ) -> "Orchestrator":
        gateway = HttpMetadataGateway(
            config.org.instance_url,
            config.org.access_token,
            api_version=config.manifest.api_version,
            request_timeout=config.org.request_timeout or 60.0,
        )
        return cls(
            gateway,
            local_components=local_components,
            manifest_defaults=config.manifest,
        )

    async def __aenter__(self) -> "Orchestrator":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.gateway.aclose()

    async def build_manifest(
        self,
        flags: Mapping[str, Any],
        defaults: Optional[ManifestDefaults] = None,
    ) -> ManifestDocument:
        """Build and write a manifest; flags override the config file defaults."""
        defaults = defaults or self.manifest_defaults
        config = BuildConfig.from_flags(
            flags, await self._default_api_version(flags, defaults), defaults
        )
        self.logger.info(
            "Building manifest (api %s, %s, exclude managed: %s)",
            config.api_version,
            ", ".join(config.quick_filters) or "all types",
            config.exclude_managed,
        )
        return await self.package_builder.build(config)

    async def check_fields(self, full_names: Sequence[str]) -> Dict[str, bool]:
        """Report whether each ``Object.Field`` name exists locally or in the org."""
        names = list(dict.fromkeys(full_names))
        results = await asyncio.gather(*(self.fields.field_exists(name) for name in names))
        return dict(zip(names, results))

    async def _default_api_version(
        self, flags: Mapping[str, Any], defaults: Optional[ManifestDefaults]
    ) -> str:
        explicit = flags.get("apiversion") or (defaults.api_version if defaults else None)
        if explicit:
            return str(explicit)
        try:
            return await self.gateway.max_api_version()
        except GatewayError as exc:
            raise CatalogUnavailable(f"Unable to determine the org API version: {exc}") from exc


__all__ = ["Orchestrator"]
