"""Exception note utilities for Python 3.10+ compatibility."""

# add_note was added in 3.11 - hoisted to a constant so tests can patch it
supports_add_note = hasattr(Exception, "add_note")


def add_exception_note(exception: BaseException, note: str) -> None:
    """Attach a note to an exception, falling back to extending its message on Python 3.10."""
    if supports_add_note:
        exception.add_note(note)  # type: ignore[attr-defined]
    elif exception.args:
        exception.args = (f"{exception.args[0]}\n{note}",) + exception.args[1:]
    else:
        exception.args = (note,)
