"""httpx gateway speaking the Salesforce Metadata SOAP and REST query APIs."""

from __future__ import annotations

import os
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..logging import get_logger
from ..models import ComponentRecord, TypeDescriptor
from .base import GatewayError, MetadataGateway

_SOAP_NS = "http://schemas.xmlsoap.org/soap/envelope/"
_METADATA_NS = "http://soap.sforce.com/2006/04/metadata"


def _md(tag: str) -> str:
    return f"{{{_METADATA_NS}}}{tag}"


class HttpMetadataGateway(MetadataGateway):
    """Talks to one org using an access token issued elsewhere."""

    ENV_INSTANCE_URL_KEYS = ("MANIFESTGEN_INSTANCE_URL", "SF_INSTANCE_URL")
    ENV_ACCESS_TOKEN_KEYS = ("MANIFESTGEN_ACCESS_TOKEN", "SF_ACCESS_TOKEN")

    def __init__(
        self,
        instance_url: str | None = None,
        access_token: str | None = None,
        *,
        api_version: str | None = None,
        request_timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        resolved_url = instance_url or self._first_env_value(self.ENV_INSTANCE_URL_KEYS)
        resolved_token = access_token or self._first_env_value(self.ENV_ACCESS_TOKEN_KEYS)
        if not resolved_url or not resolved_token:
            raise GatewayError(
                "An instance URL and access token are required. "
                "Set them in .manifestgen.yml or via SF_INSTANCE_URL / SF_ACCESS_TOKEN."
            )
        self.instance_url = resolved_url.rstrip("/")
        self.access_token = resolved_token
        self.api_version = api_version
        self.request_timeout = request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._max_api_version: Optional[str] = None
        self.logger = get_logger("gateway")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.request_timeout,
                headers={"Authorization": f"Bearer {self.access_token}"},
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Metadata API

    async def describe_metadata(self, api_version: str) -> List[TypeDescriptor]:
        operation, envelope = self._envelope("describeMetadata")
        ET.SubElement(operation, _md("asOfVersion")).text = api_version
        root = await self._call_soap(envelope, api_version)

        descriptors: List[TypeDescriptor] = []
        for node in root.iter(_md("metadataObjects")):
            xml_name = node.findtext(_md("xmlName"))
            if not xml_name:
                continue
            descriptors.append(
                TypeDescriptor(
                    xml_name=xml_name,
                    in_folder=_as_bool(node.findtext(_md("inFolder"))),
                    directory_name=node.findtext(_md("directoryName")) or None,
                    suffix=node.findtext(_md("suffix")) or None,
                    child_xml_names=tuple(
                        child.text for child in node.findall(_md("childXmlNames")) if child.text
                    ),
                )
            )
        self.logger.debug("describeMetadata returned %d types", len(descriptors))
        return descriptors

    async def list_metadata(
        self, type_name: str, api_version: str, folder: Optional[str] = None
    ) -> List[ComponentRecord]:
        operation, envelope = self._envelope("listMetadata")
        queries = ET.SubElement(operation, _md("queries"))
        if folder:
            ET.SubElement(queries, _md("folder")).text = folder
        ET.SubElement(queries, _md("type")).text = type_name
        ET.SubElement(operation, _md("asOfVersion")).text = api_version
        root = await self._call_soap(envelope, api_version)

        records: List[ComponentRecord] = []
        for node in root.iter(_md("result")):
            full_name = node.findtext(_md("fullName"))
            if not full_name:
                continue
            records.append(
                ComponentRecord(
                    type=node.findtext(_md("type")) or type_name,
                    full_name=full_name,
                    file_name=node.findtext(_md("fileName")) or "",
                    namespace_prefix=node.findtext(_md("namespacePrefix")) or None,
                    manageable_state=node.findtext(_md("manageableState")) or None,
                    id=node.findtext(_md("id")) or None,
                    last_modified_date=node.findtext(_md("lastModifiedDate")) or None,
                )
            )
        return records

    # ------------------------------------------------------------------
    # REST API

    async def query(self, soql: str, *, tooling: bool = False) -> List[Dict[str, Any]]:
        version = self.api_version or await self.max_api_version()
        path = "tooling/query" if tooling else "query"
        url: Optional[str] = f"{self.instance_url}/services/data/v{version}/{path}"
        params: Optional[Dict[str, str]] = {"q": soql}

        rows: List[Dict[str, Any]] = []
        while url:
            payload = await self._get_json(url, params=params)
            if not isinstance(payload, dict):
                raise GatewayError("Query endpoint returned an unexpected payload")
            for record in payload.get("records") or []:
                if isinstance(record, dict):
                    rows.append({key: value for key, value in record.items() if key != "attributes"})
            next_url = payload.get("nextRecordsUrl")
            if payload.get("done", True) or not next_url:
                url = None
            else:
                url = f"{self.instance_url}{next_url}"
                params = None
        return rows

    async def max_api_version(self) -> str:
        if self._max_api_version is None:
            payload = await self._get_json(f"{self.instance_url}/services/data/")
            versions = [
                str(entry["version"])
                for entry in payload or []
                if isinstance(entry, dict) and entry.get("version")
            ]
            if not versions:
                raise GatewayError("Org did not report any API versions")
            self._max_api_version = max(versions, key=float)
        return self._max_api_version

    # ------------------------------------------------------------------
    # Internal helpers

    def _envelope(self, operation: str) -> tuple[ET.Element, ET.Element]:
        envelope = ET.Element(f"{{{_SOAP_NS}}}Envelope")
        header = ET.SubElement(envelope, f"{{{_SOAP_NS}}}Header")
        session = ET.SubElement(header, _md("SessionHeader"))
        ET.SubElement(session, _md("sessionId")).text = self.access_token
        body = ET.SubElement(envelope, f"{{{_SOAP_NS}}}Body")
        return ET.SubElement(body, _md(operation)), envelope

    async def _call_soap(self, envelope: ET.Element, api_version: str) -> ET.Element:
        url = f"{self.instance_url}/services/Soap/m/{api_version}"
        data = ET.tostring(envelope, encoding="utf-8", xml_declaration=True)
        headers = {"Content-Type": "text/xml; charset=UTF-8", "SOAPAction": '""'}
        try:
            response = await self.client.post(url, content=data, headers=headers)
        except httpx.HTTPError as exc:
            raise GatewayError(f"Metadata API request failed: {exc}") from exc

        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as exc:
            raise GatewayError(
                f"Metadata API returned invalid XML (status {response.status_code})"
            ) from exc

        fault = root.find(f".//{{{_SOAP_NS}}}Fault")
        if fault is not None:
            message = fault.findtext("faultstring") or "unknown fault"
            raise GatewayError(f"Metadata API fault: {message}")
        if response.is_error:
            raise GatewayError(f"Metadata API failed with status {response.status_code}")
        return root

    async def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = exc.response.text.strip()
            raise GatewayError(
                f"REST request failed with status {exc.response.status_code}: {detail}"
            ) from exc
        except httpx.HTTPError as exc:
            raise GatewayError(f"REST request failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise GatewayError("REST endpoint returned invalid JSON") from exc

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None


def _as_bool(value: str | None) -> bool:
    return (value or "").strip().lower() == "true"


__all__ = ["HttpMetadataGateway"]
