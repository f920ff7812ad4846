"""Component Factory for strategy instantiation.

Selects the document renderer and record store implementations at
runtime based on configuration.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from medidoc.core.config import Settings, get_settings
from medidoc.interfaces.record_store import BaseRecordStore
from medidoc.interfaces.renderer import BaseDocumentRenderer
from medidoc.strategies.record_stores import SQLRecordStore
from medidoc.strategies.renderers import DocxRenderer, PlainTextRenderer

logger = logging.getLogger(__name__)


class ComponentFactory:
    """Factory for creating component instances based on configuration.

    Example:
        ```python
        factory = ComponentFactory(get_settings())

        renderer = factory.get_renderer()
        store = factory.get_record_store(session)
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the factory with optional settings.

        Args:
            settings: Application settings. If None, uses global settings.
        """
        self._settings = settings or get_settings()
        self._renderer_cache: BaseDocumentRenderer | None = None

    def get_renderer(self, renderer_type: str | None = None) -> BaseDocumentRenderer:
        """Get a renderer instance based on the specified type.

        Args:
            renderer_type: The renderer type to instantiate. If None, uses settings.

        Returns:
            A BaseDocumentRenderer implementation instance.

        Raises:
            ValueError: If the renderer type is unknown.
        """
        if self._renderer_cache is None or renderer_type is not None:
            renderer_type = (renderer_type or self._settings.renderer_type).lower()

            logger.info(f"Instantiating renderer: {renderer_type}")

            match renderer_type:
                case "docx":
                    self._renderer_cache = DocxRenderer()
                case "text":
                    self._renderer_cache = PlainTextRenderer()
                case _:
                    raise ValueError(
                        f"Unknown renderer type: {renderer_type}. "
                        f"Valid options: 'docx', 'text'"
                    )

        return self._renderer_cache

    def get_record_store(self, session: AsyncSession) -> BaseRecordStore:
        """Wrap a request-scoped session in a record store."""
        return SQLRecordStore(session)

    def clear_cache(self) -> None:
        """Forget cached components so settings changes take effect."""
        self._renderer_cache = None
        logger.debug("Component factory cache cleared")

