from typing import Dict, List, Type, TypeVar
from loguru import logger

from .config import ConfigManager
from .base_system import BaseSystem

T = TypeVar("T", bound=BaseSystem)


class ServiceLocator:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ServiceLocator, cls).__new__(cls)
            cls._instance.is_ready = False
            cls._instance._systems = {}
            cls._instance._order = []
        return cls._instance

    def init(self, config_path: str):
        if self.is_ready: return

        self.config = ConfigManager(config_path)
        self._systems: Dict[Type[BaseSystem], BaseSystem] = {}
        self._order: List[Type[BaseSystem]] = []

        self.is_ready = True

    def register_system(self, system_cls: Type[T]) -> T:
        """Instantiate and register a system. Registering twice returns the existing one."""
        if system_cls in self._systems:
            return self._systems[system_cls]
        instance = system_cls(self, self.config)
        self._systems[system_cls] = instance
        self._order.append(system_cls)
        logger.debug(f"Registered system: {system_cls.__name__}")
        return instance

    def get_system(self, system_cls: Type[T]) -> T:
        """Raises KeyError if the system was never registered."""
        try:
            return self._systems[system_cls]
        except KeyError:
            raise KeyError(f"System not registered: {system_cls.__name__}") from None

    async def start_all(self):
        for system_cls in self._order:
            system = self._systems[system_cls]
            if not system.is_ready:
                await system.initialize()
                logger.info(f"System started: {system_cls.__name__}")

    async def stop_all(self):
        # Reverse registration order so dependents stop first
        for system_cls in reversed(self._order):
            system = self._systems[system_cls]
            if system.is_ready:
                try:
                    await system.shutdown()
                except Exception as e:
                    logger.error(f"Failed to stop {system_cls.__name__}: {e}")

    def reset(self):
        """Forget all systems and configuration (for testing)."""
        self._systems = {}
        self._order = []
        self.is_ready = False

# Global access
sl = ServiceLocator()
