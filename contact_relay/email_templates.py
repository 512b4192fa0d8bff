"""
Plain-text email templates
"""

from .schemas import ContactSubmission


def contact_request_text(submission: ContactSubmission) -> str:
    """Body of the notification sent for a contact form submission"""
    lines = [
        "You have received a new contact request from the website:",
        "",
        f"Name: {submission.first_name} {submission.last_name}",
        f"Email: {submission.email}",
        f"Phone: {submission.phone}",
        f"Address: {submission.address}",
    ]
    if submission.city is not None:
        lines.append(f"City: {submission.city}")
    if submission.zip_code is not None:
        lines.append(f"Zip Code: {submission.zip_code}")
    lines += [
        "",
        "Message:",
        submission.message,
        "",
    ]
    return "\n".join(lines)
