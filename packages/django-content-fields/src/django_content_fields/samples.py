"""Reference content type.

Import this module (or list it in an app's ``contents.py``) to make the
sample page available for discovery.
"""

from .content_types import ContentBase, ContentField
from .field_types import MarkdownFieldType, StringArrayFieldType, TextFieldType


class SamplePage(ContentBase):
    content_name = "Sample page"
    content_description = "A simple page with title, summary, body and tags"
    content_order = -1

    title = ContentField(TextFieldType, display_name="Title", required=True, max_length=200)
    description = ContentField(
        MarkdownFieldType, display_name="Summary", markdown_toolbar="simple"
    )
    content = ContentField(MarkdownFieldType, display_name="Body", markdown_toolbar="standard")
    tags = ContentField(StringArrayFieldType, display_name="Tags")
