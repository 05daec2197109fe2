"""
Capture orchestrator - sequences one alert through the capture pipeline.

Each webhook call runs one independent pipeline instance:

    extract context -> resolve credentials -> locate VM and storage
    -> ensure network watcher -> ensure agent -> rotate pool and create capture

Any failure short-circuits the remaining steps and is returned as a
classified CaptureProcessingResult; nothing is rolled back because every
step is safe to repeat on the next alert.
"""

from typing import Any, Dict, Optional

import httpx

from alertcapture.config.settings import Settings
from alertcapture.exceptions import CaptureError
from alertcapture.integrations.azure import AzureControlPlaneClient
from alertcapture.models.constants import PipelineStep
from alertcapture.models.processing_result import CaptureProcessingResult
from alertcapture.services.agent_extension_service import AgentExtensionService
from alertcapture.services.capture_pool_manager import CapturePoolManager
from alertcapture.services.context_extractor import AlertContextExtractor
from alertcapture.services.credential_resolver import CredentialResolver
from alertcapture.services.network_watcher_service import NetworkWatcherService
from alertcapture.services.resource_locator import ResourceLocator
from alertcapture.utils.logger import get_module_logger

logger = get_module_logger(__name__)


class CaptureOrchestrator:
    """Runs the capture pipeline for a single alert and classifies its outcome."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self.settings = settings
        self.extractor = AlertContextExtractor()
        self.credential_resolver = CredentialResolver(settings, http_client=http_client)
        self.resource_locator = ResourceLocator(settings.packet_capture_storage_account)
        self.network_watcher_service = NetworkWatcherService(
            resource_group_name=settings.network_watcher_resource_group,
            name_prefix=settings.network_watcher_name_prefix,
        )
        self.agent_service = AgentExtensionService(
            extension_name=settings.network_watcher_extension_name,
            version=settings.network_watcher_extension_version,
            default_agent_type=settings.default_agent_type,
        )
        self.pool_manager = CapturePoolManager(name_max_length=settings.capture_name_max_length)

    async def process_alert(self, payload: Dict[str, Any]) -> CaptureProcessingResult:
        """
        Provision a packet capture for the resource named by an alert.

        Args:
            payload: Decoded webhook body

        Returns:
            CaptureProcessingResult describing the created capture, or the
            step that failed and how the failure is classified. Never raises.
        """
        step = PipelineStep.EXTRACT_CONTEXT
        handle: Optional[AzureControlPlaneClient] = None
        try:
            context = self.extractor.extract(payload)

            step = PipelineStep.RESOLVE_CREDENTIALS
            handle = await self.credential_resolver.resolve(context.subscription_id)

            step = PipelineStep.LOCATE_COMPUTE
            target = await self.resource_locator.locate_compute(handle, context.resource_id)

            step = PipelineStep.LOCATE_STORAGE
            storage = await self.resource_locator.locate_storage(handle)

            step = PipelineStep.ENSURE_NETWORK_WATCHER
            logger.debug(f"Checking for Network Watcher in region: {target.region}")
            watcher = await self.network_watcher_service.ensure(handle, target.region)

            step = PipelineStep.ENSURE_AGENT
            await self.agent_service.ensure(handle, target)

            step = PipelineStep.ROTATE_AND_CREATE
            rotation = await self.pool_manager.rotate_and_create(
                handle,
                watcher,
                target,
                storage,
                max_count=self.settings.max_packet_captures,
                capture_duration_seconds=self.settings.capture_time_limit_seconds,
            )

        except CaptureError as e:
            logger.error(f"Capture pipeline failed at step {step.value}: {e.to_dict()}")
            return CaptureProcessingResult.failed(step, e)
        except Exception as e:
            logger.exception(f"Unexpected error in capture pipeline at step {step.value}: {str(e)}")
            return CaptureProcessingResult.failed(step, e)
        finally:
            if handle is not None:
                await handle.close()

        logger.info(
            f"Packet capture {rotation.capture.name} created on {watcher.name} for {target.name}"
            + (f" (evicted {rotation.evicted})" if rotation.evicted else "")
        )
        return CaptureProcessingResult.succeeded(
            capture_name=rotation.capture.name,
            watcher_name=watcher.name,
            target_id=target.id,
            evicted_capture=rotation.evicted,
        )
