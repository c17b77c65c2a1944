"""Human input latch read by the match on every frame."""


class PlayerInput:
    """Current state of a human player's controls.

    lateral_axis is a held analog value in [-1, 1]. Confirm is a discrete
    press: it is latched until the match consumes it on the next frame.
    """

    def __init__(self):
        self._lateral_axis = 0.0
        self._confirm = False

    @property
    def lateral_axis(self) -> float:
        return self._lateral_axis

    @lateral_axis.setter
    def lateral_axis(self, value: float) -> None:
        self._lateral_axis = max(-1.0, min(1.0, float(value)))

    def press_confirm(self) -> None:
        self._confirm = True

    def consume_confirm(self) -> bool:
        pressed = self._confirm
        self._confirm = False
        return pressed

    def reset(self) -> None:
        self._lateral_axis = 0.0
        self._confirm = False
