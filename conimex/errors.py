"""
Exceptions raised by the Conimex import engine.

Only conditions that stop a block or the whole import are modelled as
exceptions. Stale taxonomy options, unresolved relation targets and
malformed localization data are skipped where they are detected.
"""


class ConimexError(Exception):
    """Base class for all Conimex errors."""


class SchemaConfigError(ConimexError):
    """The content type or taxonomy configuration could not be loaded."""


class UndefinedContentTypeError(ConimexError):
    """
    A block (or a record inside it) references a content type that is not
    declared in the schema registry. Processing of the block stops.
    """

    def __init__(self, content_type: str):
        self.content_type = content_type
        super().__init__(
            f"Requested ContentType {content_type} is not defined in contenttypes.yaml."
        )


class MissingAuthorError(ConimexError):
    """
    New content needs an author, but there are no user accounts at all.
    """

    def __init__(self, content_type: str, slug: str):
        self.content_type = content_type
        self.slug = slug
        super().__init__(
            f"Cannot create '{content_type}/{slug}': no user accounts exist to act as author. "
            "Import the users block first or create at least one user."
        )
