"""
Reply Composer

Renders detected labels as plain text and HTML and assembles the
reply message. Pure functions; identical input gives identical output.
"""

from collections.abc import Sequence

from image_labeler.models.reply import Label, ReplyMessage

REPLY_SUBJECT = "Your analyzed Image"
REPLY_CHARSET = "UTF-8"

TEXT_PREAMBLE = "Your image was analyzed with Amazon Rekognition. Detected labels:"

# NOTE: label names are inserted unescaped and <pre> is never closed.
HTML_TEMPLATE = """<html>
<head></head>
<body>
<h1>Your Results</h1>
<pre>{labels}<pre>
<hr/>
<p>This email was sent with <a href='https://aws.amazon.com/ses/'>Amazon SES</a> using the
<a href='https://aws.amazon.com/sdk-for-python/'>AWS SDK for Python (Boto)</a>.</p>
</body>
</html>"""


def render_labels_as_text(labels: Sequence[Label]) -> str:
    """One `name: confidence` line per label, in the order given."""
    return "\n".join(f"{label.name}: {label.confidence}" for label in labels)


def render_text(labels: Sequence[Label]) -> str:
    return f"{TEXT_PREAMBLE}\n{render_labels_as_text(labels)}"


def render_html(labels: Sequence[Label]) -> str:
    return HTML_TEMPLATE.format(labels=render_labels_as_text(labels))


def compose_reply(
    labels: Sequence[Label],
    target_address: str,
    from_address: str,
) -> ReplyMessage:
    """
    Build the reply for a set of detected labels.

    Args:
        labels: Labels in detection order
        target_address: Original sender (From header of the received email)
        from_address: Verified SES sender identity

    Returns:
        ReplyMessage with text and HTML bodies
    """
    return ReplyMessage(
        to_address=target_address,
        from_address=from_address,
        subject=REPLY_SUBJECT,
        body_text=render_text(labels),
        body_html=render_html(labels),
        charset=REPLY_CHARSET,
    )
