from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

DEFAULT_EVENT_NAME = 'message'
KEEP_ALIVE = ': keep-alive\n\n'


@dataclass(frozen=True)
class Event:
    content: str
    name: str = DEFAULT_EVENT_NAME
    id: Optional[str] = None
    comments: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.name is None:
            object.__setattr__(self, 'name', DEFAULT_EVENT_NAME)
        object.__setattr__(self, 'comments', tuple(self.comments or ()))

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'content': self.content,
            'id': self.id,
            'comments': list(self.comments),
        }


def make_event(content: str, name: Optional[str] = None, event_id: Optional[str] = None,
               comments: Optional[Sequence[str]] = None) -> Event:
    return Event(content=content, name=name, id=event_id, comments=tuple(comments or ()))


def format_event(event: Event) -> str:
    name = DEFAULT_EVENT_NAME if event.name is None else event.name
    lines = [f'event: {name}']
    if event.id is not None:
        lines.append(f'id: {event.id}')
    for comment in event.comments:
        lines.append(f': {comment}')
    lines.append(f'data: {event.content}')
    return '\n'.join(lines) + '\n\n'
