"""Deferred cheat activation.

Cheats requested by scripts or by the user must not run at arbitrary times:
vehicle and weapon cheats need loaded models and crash the game when executed
outside of the engine's cheat processing step.  Requests are therefore queued
and the per-frame hook drains the queue at the safe point.

The engine state itself is reached through a :class:`CheatBackend`, so nothing
in this module depends on process memory layout.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cheat:
    index: int
    code: str
    description: str


class CheatBackend(Protocol):
    """Capability interface over the engine's cheat tables."""

    def get_function(self, index: int) -> Optional[Callable[[], None]]:
        ...

    def is_active(self, index: int) -> bool:
        ...

    def set_active(self, index: int, value: bool) -> None:
        ...


class MemoryCheatBackend:
    """In-process backend keeping cheat state in dictionaries."""

    def __init__(
        self, functions: Optional[Dict[int, Callable[[], None]]] = None
    ) -> None:
        self._functions: Dict[int, Callable[[], None]] = dict(functions or {})
        self._active: Dict[int, bool] = {}

    def get_function(self, index: int) -> Optional[Callable[[], None]]:
        return self._functions.get(index)

    def is_active(self, index: int) -> bool:
        return self._active.get(index, False)

    def set_active(self, index: int, value: bool) -> None:
        self._active[index] = value


class CheatQueue:
    """Thread-safe, append-only queue of pending cheat indices."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: List[int] = []

    def queue(self, index: int) -> None:
        if not 0 <= index < len(CHEATS):
            raise IndexError(f"no cheat with index {index}")
        with self._lock:
            self._pending.append(index)

    def drain(self) -> List[int]:
        """Return every pending index and clear the queue in one step."""

        with self._lock:
            pending, self._pending = self._pending, []
        return pending

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)


def run_cheat(backend: CheatBackend, index: int) -> None:
    function = backend.get_function(index)
    if function is not None:
        logger.info("Calling cheat function %r", function)
        function()
        return

    # Cheats without a function are plain toggles.
    backend.set_active(index, not backend.is_active(index))


def do_cheats(queue: CheatQueue, backend: CheatBackend) -> int:
    """Run every queued cheat; called once per frame at the safe point."""

    pending = queue.drain()
    for index in pending:
        run_cheat(backend, index)
    return len(pending)


def find_cheat(code: str) -> Optional[Cheat]:
    token = code.strip().upper()
    if not token:
        return None
    for cheat in CHEATS:
        if cheat.code == token:
            return cheat
    return None


# Engine order; entries without a code have no keyboard input.
CHEATS: Tuple[Cheat, ...] = tuple(
    Cheat(index, code, description)
    for index, (code, description) in enumerate(
        [
            ("THUGSARMOURY", "Weapon set 1"),
            ("PROFESSIONALSKIT", "Weapon set 2"),
            ("NUTTERSTOYS", "Weapon set 3"),
            ("", "Give dildo, minigun and thermal/night-vision goggles"),
            ("", "Advance clock by 4 hours"),
            ("", "Skip to completion on some missions"),
            ("", "Debug (show mappings)"),
            ("", "Full invincibility"),
            ("", "Debug (show tap to target)"),
            ("", "Debug (show targeting)"),
            ("INEEDSOMEHELP", "Give health, armour and $250,000"),
            ("TURNUPTHEHEAT", "Increase wanted level by two stars"),
            ("TURNDOWNTHEHEAT", "Clear wanted level"),
            ("PLEASANTLYWARM", "Sunny weather"),
            ("TOODAMNHOT", "Very sunny weather"),
            ("DULLDULLDAY", "Overcast weather"),
            ("STAYINANDWATCHTV", "Rainy weather"),
            ("CANTSEEWHEREIMGOING", "Foggy weather"),
            ("TIMEJUSTFLIESBY", "Faster time"),
            ("SPEEDITUP", "Faster gameplay"),
            ("SLOWITDOWN", "Slower gameplay"),
            ("ROUGHNEIGHBOURHOOD", "Pedestrians riot, give player golf club"),
            ("STOPPICKINGONME", "Pedestrians attack the player"),
            ("SURROUNDEDBYNUTTERS", "Give pedestrians weapons"),
            ("TIMETOKICKASS", "Spawn Rhino tank"),
            ("OLDSPEEDDEMON", "Spawn Bloodring Banger"),
            ("", "Spawn stock car"),
            ("NOTFORPUBLICROADS", "Spawn Hotring Racer A"),
            ("JUSTTRYANDSTOPME", "Spawn Hotring Racer B"),
            ("WHERESTHEFUNERAL", "Spawn Romero"),
            ("CELEBRITYSTATUS", "Spawn Stretch Limousine"),
            ("TRUEGRIME", "Spawn Trashmaster"),
            ("18HOLES", "Spawn Caddy"),
            ("ALLCARSGOBOOM", "Explode all vehicles"),
            ("WHEELSONLYPLEASE", "Invisible cars"),
            ("STICKLIKEGLUE", "Improved suspension and handling"),
            ("GOODBYECRUELWORLD", "Suicide"),
            ("DONTTRYANDSTOPME", "Traffic lights are always green"),
            ("ALLDRIVERSARECRIMINALS", "Aggressive drivers"),
            ("PINKISTHENEWCOOL", "Pink traffic"),
            ("SOLONGASITSBLACK", "Black traffic"),
            ("", "Cars have sideways wheels"),
            ("FLYINGFISH", "Flying boats"),
            ("WHOATEALLTHEPIES", "Maximum fat"),
            ("BUFFMEUP", "Maximum muscle"),
            ("", "Maximum gambling skill"),
            ("LEANANDMEAN", "Minimum fat and muscle"),
            ("BLUESUEDESHOES", "Pedestrians are Elvis Presley"),
            ("ATTACKOFTHEVILLAGEPEOPLE", "Pedestrians attack the player with guns and rockets"),
            ("LIFESABEACH", "Beach party theme"),
            ("ONLYHOMIESALLOWED", "Gang wars"),
            ("BETTERSTAYINDOORS", "Pedestrians replaced with fighting gang members"),
            ("NINJATOWN", "Triad theme"),
            ("LOVECONQUERSALL", "Pimp mode"),
            ("EVERYONEISPOOR", "Rural traffic"),
            ("EVERYONEISRICH", "Sports car traffic"),
            ("CHITTYCHITTYBANGBANG", "Flying cars"),
            ("CJPHONEHOME", "Very high bunny hops"),
            ("JUMPJET", "Spawn Hydra"),
            ("IWANTTOHOVER", "Spawn Vortex"),
            ("TOUCHMYCARYOUDIE", "Destroy other vehicles on collision"),
            ("SPEEDFREAK", "All cars have nitro"),
            ("BUBBLECARS", "Cars float away when hit"),
            ("NIGHTPROWLER", "Always midnight"),
            ("DONTBRINGONTHENIGHT", "Always 9PM"),
            ("SCOTTISHSUMMER", "Stormy weather"),
            ("SANDINMYEARS", "Sandstorm"),
            ("", "Predator?"),
            ("KANGAROO", "10x jump height"),
            ("NOONECANHURTME", "Infinite health"),
            ("MANFROMATLANTIS", "Infinite lung capacity"),
            ("LETSGOBASEJUMPING", "Spawn Parachute"),
            ("ROCKETMAN", "Spawn Jetpack"),
            ("IDOASIPLEASE", "Lock wanted level"),
            ("BRINGITON", "Six-star wanted level"),
            ("STINGLIKEABEE", "Super punches"),
            ("IAMNEVERHUNGRY", "Player never gets hungry"),
            ("STATEOFEMERGENCY", "Pedestrians riot"),
            ("CRAZYTOWN", "Carnival theme"),
            ("TAKEACHILLPILL", "Adrenaline effects"),
            ("FULLCLIP", "Everyone has unlimited ammo"),
            ("IWANNADRIVEBY", "Full weapon control in vehicles"),
            ("GHOSTTOWN", "No pedestrians, reduced live traffic"),
            ("HICKSVILLE", "Rural theme"),
            ("WANNABEINMYGANG", "Recruit anyone with pistols"),
            ("NOONECANSTOPUS", "Recruit anyone with AK-47s"),
            ("ROCKETMAYHEM", "Recruit anyone with rocket launchers"),
            ("WORSHIPME", "Maximum respect"),
            ("HELLOLADIES", "Maximum sex appeal"),
            ("ICANGOALLNIGHT", "Maximum stamina"),
            ("PROFESSIONALKILLER", "Hitman level for all weapons"),
            ("NATURALTALENT", "Maximum vehicle skills"),
            ("OHDUDE", "Spawn Hunter"),
            ("FOURWHEELFUN", "Spawn Quad"),
            ("HITTHEROADJACK", "Spawn Tanker with Tanker Trailer"),
            ("ITSALLBULL", "Spawn Dozer"),
            ("FLYINGTOSTUNT", "Spawn Stunt Plane"),
            ("MONSTERMASH", "Spawn Monster Truck"),
            ("", "Prostitutes pay you?"),
            ("", "Taxis have hydraulics and nitro"),
            ("", "CRASHES! Slot cheat 1"),
            ("", "CRASHES! Slot cheat 2"),
            ("", "CRASHES! Slot cheat 3"),
            ("", "CRASHES! Slot cheat 4"),
            ("", "CRASHES! Slot cheat 5"),
            ("", "CRASHES! Slot cheat 6"),
            ("", "CRASHES! Slot cheat 7"),
            ("", "CRASHES! Slot cheat 8"),
            ("", "CRASHES! Slot cheat 9"),
            ("", "CRASHES! Slot cheat 10"),
            ("", "Xbox helper"),
        ]
    )
)


__all__ = [
    "CHEATS",
    "Cheat",
    "CheatBackend",
    "CheatQueue",
    "MemoryCheatBackend",
    "do_cheats",
    "find_cheat",
    "run_cheat",
]
