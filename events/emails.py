# events/emails.py
from io import BytesIO

import qrcode
from django.conf import settings
from django.core.mail import EmailMultiAlternatives, send_mail


def ticket_qr_payload(ticket) -> str:
    """What the door scanner reads back: the ticket id."""
    return str(ticket.pk)


def render_ticket_qr(ticket) -> bytes:
    """
    PNG bytes of the ticket QR code.
    """
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=4,
    )
    qr.add_data(ticket_qr_payload(ticket))
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def _display_name(user):
    return getattr(user, "name", None) or user.username


def send_ticket_email(ticket):
    """
    Confirmation email with the entry QR attached.

    QR rendering is best-effort: if it fails the mail still goes out and the
    participant can quote the ticket id at the door.
    """
    user = ticket.user
    event = ticket.event

    if not getattr(user, "email", None):
        return

    is_merch = event.is_merch
    action_word = "purchased" if is_merch else "registered for"
    action_title = "Purchase Confirmed" if is_merch else "Registration Confirmed"
    starts = event.start_date.strftime("%b %d, %Y %I:%M %p") if event.start_date else "N/A"

    team_line = f"Team: {ticket.team.name}\n" if ticket.team_id else ""

    message = (
        f"Hello {_display_name(user)},\n\n"
        f"You have successfully {action_word} {event.name}.\n"
        f"Date: {starts}\n"
        f"{team_line}"
        f"Status: Confirmed\n\n"
        f"Ticket ID: {ticket.pk}\n\n"
        f"Please show the attached QR code or your Ticket ID at the entrance.\n\n"
        f"Best regards,\n"
        f"Felicity Event Management Team"
    )

    try:
        qr_png = render_ticket_qr(ticket)
    except Exception:
        qr_png = None

    html = (
        f"<p>Hello <strong>{_display_name(user)}</strong>,</p>"
        f"<p>You have successfully {action_word} <strong>{event.name}</strong>.</p>"
        f"<p><strong>Date:</strong> {starts}<br>"
        f"<strong>Status:</strong> Confirmed<br>"
        f"<strong>Ticket ID:</strong> {ticket.pk}</p>"
    )
    if qr_png is None:
        html += "<p>Note: QR code generation failed. Please use your Ticket ID for verification.</p>"

    email = EmailMultiAlternatives(
        subject=f"{action_title} - {event.name}",
        body=message,
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        to=[user.email],
    )
    email.attach_alternative(html, "text/html")
    if qr_png is not None:
        email.attach("ticket_qr.png", qr_png, "image/png")
    email.send(fail_silently=False)


def send_cancellation_email(ticket):
    user = ticket.user
    event = ticket.event

    if not getattr(user, "email", None):
        return

    send_mail(
        subject=f"Registration Cancelled - {event.name}",
        message=(
            f"Hello {_display_name(user)},\n\n"
            f"Your registration for {event.name} (Ticket ID: {ticket.pk}) has been cancelled.\n\n"
            f"Best regards,\n"
            f"Felicity Event Management Team"
        ),
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=[user.email],
        fail_silently=False,
    )


def send_team_created_email(team):
    leader = team.leader
    if not getattr(leader, "email", None):
        return

    event = team.event
    send_mail(
        subject=f"Team Created - {team.name}",
        message=(
            f"Hello {_display_name(leader)},\n\n"
            f"Your team \"{team.name}\" for {event.name} has been created.\n"
            f"Share this code with your teammates: {team.code}\n"
            f"Team size: {event.min_team_size}-{event.max_team_size} members.\n\n"
            f"Best regards,\n"
            f"Felicity Event Management Team"
        ),
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=[leader.email],
        fail_silently=False,
    )


def send_team_joined_email(team, member):
    leader = team.leader
    if not getattr(leader, "email", None) or leader.pk == member.pk:
        return

    send_mail(
        subject=f"New Member - {team.name}",
        message=(
            f"Hello {_display_name(leader)},\n\n"
            f"{_display_name(member)} joined your team \"{team.name}\" "
            f"({team.member_count}/{team.event.max_team_size}).\n\n"
            f"Best regards,\n"
            f"Felicity Event Management Team"
        ),
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=[leader.email],
        fail_silently=False,
    )


def send_team_complete_email(team):
    recipients = [m.email for m in team.members.all() if m.email]
    if not recipients:
        return

    send_mail(
        subject=f"Team Complete - {team.name}",
        message=(
            f"Your team \"{team.name}\" for {team.event.name} is complete.\n"
            f"Tickets are being issued to every member; check your inbox for the QR code.\n\n"
            f"Best regards,\n"
            f"Felicity Event Management Team"
        ),
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=recipients,
        fail_silently=False,
    )
