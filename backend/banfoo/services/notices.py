from __future__ import annotations
from typing import Literal
from banfoo.models.question import Question
from banfoo.schemas.question import DialogCopy
from banfoo.schemas.events import (
    Notice, NaturalDisasterEvent, WorldPeaceEvent, DisasterAidEvent, ThiefEvent, FreezeEvent,
)

Variant = Literal["challenge", "result"]

CHALLENGE_FOUND = "You've discovered a challenge! Complete it!"
WELL_DONE = "Well done completing the challenge!"


def dialog_title(q: Question | None, variant: Variant) -> str:
    default = "CHALLENGE UNLOCKED!" if variant == "challenge" else "CHALLENGE COMPLETED!"
    if q is None:
        return default
    return {
        "temptation": "TREASURE FOUND!",
        "empty": "NO TREASURE FOUND!",
        "virtue": "VIRTUOUS ACTS REMINDER",
    }.get(q.type, default)

def dialog_description(q: Question | None, variant: Variant) -> str:
    if q is None:
        return CHALLENGE_FOUND if variant == "challenge" else WELL_DONE
    if q.type == "temptation":
        return ""
    if q.type == "empty":
        return "Unfortunately, there is no gold bar here. Better luck at the next location!"
    if q.type == "virtue":
        return (
            "Have you done a virtuous act during camp? Upload a photo of your act to earn gold bars!\n\n"
            "Remember: Only genuine acts of virtue count! Show your virtuous hearts now!"
        )
    if q.type == "noreward":
        if variant == "result":
            return "\n".join([
                WELL_DONE,
                "But oops... Looks like this treasure chest had a hole in the bottom!",
                "The gold bars rolled away long ago!",
                "Better luck at the next location!",
            ])
        return CHALLENGE_FOUND
    if variant == "result":
        return f"{WELL_DONE}\n\n{q.points} gold bars added to your treasure chest! Keep up the good work!"
    return CHALLENGE_FOUND

def dialog(q: Question | None, variant: Variant) -> DialogCopy:
    return DialogCopy(title=dialog_title(q, variant), description=dialog_description(q, variant))


def notice_for(event, team_id: int | None) -> Notice | None:
    """What a team device shows when a global event lands. None = nothing to show."""
    if isinstance(event, NaturalDisasterEvent) and event.active:
        lost = -event.deltas.get(team_id, 0) if team_id is not None else 0
        return Notice(
            title="WARNING!",
            description=(
                f"A major flood has been triggered.\n{lost} gold bars have been swept away by the flood."
                if lost > 0
                else "A major flood has been triggered, but your team had no gold to lose."
            ),
            tone="danger",
        )
    if isinstance(event, WorldPeaceEvent) and event.active:
        gained = event.deltas.get(team_id, 0) if team_id is not None else 0
        lines = [
            "All groups' good deeds have reached the camp target!",
            "",
            "All gold bars you have already earned are now DOUBLED!",
            f"Your team gained +{gained} gold bars." if gained > 0 else "",
            "",
            "Thank you for your kindness and contributions.",
            "The world is better because of you~",
            "",
            "Don't forget to keep doing good deeds as you continue your journey!",
        ]
        return Notice(title="INCREDIBLE NEWS!", description="\n".join(x for x in lines if x), tone="success")
    if isinstance(event, DisasterAidEvent):
        if event.open:
            return Notice(
                title="DISASTER AID",
                description="A disaster aid round has started. Donate gold bars to help the camp recover!",
            )
        return Notice(
            title="DISASTER AID CLOSED",
            description=f"Thank you! {event.total_donated} gold bars were donated in total.",
        )
    if isinstance(event, ThiefEvent) and event.active:
        delta = event.deltas.get(team_id, 0) if team_id is not None else 0
        if delta < 0:
            return Notice(title="THIEF!", description=f"A thief has stolen {-delta} gold bars from your team!", tone="danger")
        if delta > 0:
            return Notice(title="SUCCESSFUL HEIST!", description=f"Your team stole {delta} gold bars!", tone="success")
        return Notice(title="THIEF!", description="A thief is on the loose in camp. Guard your gold!")
    if isinstance(event, FreezeEvent):
        return Notice(
            title="SCOREBOARD FROZEN" if event.frozen else "SCOREBOARD LIVE",
            description="The leaderboard is frozen. Keep playing!" if event.frozen else "The leaderboard is live again.",
        )
    return None
