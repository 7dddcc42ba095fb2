"""
Overlay abstraction layer for the route renderer.

An overlay turns the state of one frame into a list of draw commands. The
base class handles painting those commands onto an image, and the registry
composes several overlays in a fixed order, enabling plugin-style panels.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Optional, Tuple

from PIL import Image

from drawing import DrawCommand, paint


class Overlay(ABC):
    """
    Abstract base class for all overlay panels.

    Overlays are laid out once per render job against a fixed image size and
    then asked for their draw commands frame by frame.

    Subclasses must implement:
        - commands(index): Draw commands for sample ``index``, or for the
          whole activity when ``index`` is None (static image)

    Example:
        class TitleOverlay(Overlay):
            def commands(self, index):
                return [Text("Morning run", 20, 40, (255, 255, 255))]

        overlay = TitleOverlay(image_size=(1080, 720))
        overlay.compose(image, index=10)
    """

    def __init__(self, image_size: Tuple[int, int], enabled: bool = True):
        """
        Args:
            image_size: (width, height) of the frames this overlay draws on
            enabled: Disabled overlays emit no commands
        """
        self._image_size = image_size
        self._enabled = enabled

    @property
    def image_size(self) -> Tuple[int, int]:
        return self._image_size

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool):
        self._enabled = value

    @abstractmethod
    def commands(self, index: Optional[int]) -> List[DrawCommand]:
        """
        Build the draw commands for one frame.

        Args:
            index: Current sample index, or None for the full-activity summary

        Returns:
            Commands in drawing order (may be empty)
        """

    def compose(self, image: Image.Image, index: Optional[int]) -> Image.Image:
        """Paint this overlay's commands onto ``image`` (in-place) if enabled."""
        if self._enabled:
            paint(image, self.commands(index))
        return image


class OverlayRegistry:
    """
    Ordered collection of named overlays.

    Example:
        registry = OverlayRegistry()
        registry.register('laps', LapPanelOverlay(...))
        registry.register('pace', PaceDistanceOverlay(...))

        registry.compose_all(frame, index)
    """

    def __init__(self):
        self._overlays: Dict[str, Overlay] = {}
        self._order: List[str] = []

    def register(self, name: str, overlay: Overlay) -> None:
        """
        Register an overlay under a unique name.

        Re-registering a name replaces the overlay but keeps its position.
        """
        if name not in self._overlays:
            self._order.append(name)
        self._overlays[name] = overlay

    def get(self, name: str) -> Optional[Overlay]:
        """Get an overlay by name."""
        return self._overlays.get(name)

    def commands_all(self, index: Optional[int]) -> List[DrawCommand]:
        """Concatenate the commands of every enabled overlay in registration order."""
        commands: List[DrawCommand] = []
        for name in self._order:
            overlay = self._overlays[name]
            if overlay.enabled:
                commands.extend(overlay.commands(index))
        return commands

    def compose_all(self, image: Image.Image, index: Optional[int]) -> Image.Image:
        """Paint all enabled overlays onto ``image`` in registration order."""
        for name in self._order:
            self._overlays[name].compose(image, index)
        return image

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._order))

    def __len__(self) -> int:
        return len(self._overlays)
