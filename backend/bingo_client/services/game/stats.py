from dataclasses import asdict, dataclass, fields

SETTINGS_KEY = 'bingo_settings'
STATS_KEY = 'bingo_stats'


@dataclass
class ClientSettings:
    autoMark: bool = True
    soundEnabled: bool = True
    vibrationEnabled: bool = True
    notifications: bool = True

    @classmethod
    def from_dict(cls, data) -> 'ClientSettings':
        """Merge a stored blob over the defaults, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: bool(v) for k, v in (data or {}).items() if k in known})

    def update(self, **changes) -> None:
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        for key, value in changes.items():
            if not isinstance(value, bool):
                raise ValueError(f"Setting '{key}' must be a boolean")
            setattr(self, key, value)

    def to_dict(self):
        return asdict(self)


@dataclass
class PlayerStats:
    gamesPlayed: int = 0
    gamesWon: int = 0
    totalWinnings: float = 0
    currentStreak: int = 0
    bestStreak: int = 0

    @classmethod
    def from_dict(cls, data) -> 'PlayerStats':
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})

    @property
    def win_rate(self) -> int:
        """Whole-percent win rate."""
        if self.gamesPlayed <= 0:
            return 0
        return round(self.gamesWon / self.gamesPlayed * 100)

    def record_round(self, won: bool, prize_amount: float = 0) -> None:
        self.gamesPlayed += 1
        if won:
            self.gamesWon += 1
            self.totalWinnings += prize_amount or 0
            self.currentStreak += 1
            self.bestStreak = max(self.bestStreak, self.currentStreak)
        else:
            self.currentStreak = 0

    def to_dict(self):
        data = asdict(self)
        data['winRate'] = self.win_rate
        return data
