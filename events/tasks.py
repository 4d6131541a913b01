# events/tasks.py
import logging

from celery import shared_task

from django.contrib.auth import get_user_model

from .models import Team, Ticket
from .emails import (
    send_ticket_email,
    send_cancellation_email,
    send_team_created_email,
    send_team_joined_email,
    send_team_complete_email,
)

logger = logging.getLogger("felicity.events")


@shared_task
def send_ticket_email_task(ticket_id: int):
    """
    Async wrapper for the ticket confirmation email (with QR).
    """
    try:
        ticket = Ticket.objects.select_related("event", "user", "team").get(id=ticket_id)
    except Ticket.DoesNotExist:
        return

    try:
        send_ticket_email(ticket)
    except Exception as e:
        # Avoid crashing worker if email fails
        logger.warning(f"Ticket email failed for ticket={ticket_id}: {e}")


@shared_task
def send_cancellation_email_task(ticket_id: int):
    try:
        ticket = Ticket.objects.select_related("event", "user").get(id=ticket_id)
    except Ticket.DoesNotExist:
        return

    try:
        send_cancellation_email(ticket)
    except Exception as e:
        logger.warning(f"Cancellation email failed for ticket={ticket_id}: {e}")


@shared_task
def send_team_created_email_task(team_id: int):
    try:
        team = Team.objects.select_related("event", "leader").get(id=team_id)
    except Team.DoesNotExist:
        return

    try:
        send_team_created_email(team)
    except Exception as e:
        logger.warning(f"Team created email failed for team={team_id}: {e}")


@shared_task
def send_team_joined_email_task(team_id: int, member_id: int):
    try:
        team = Team.objects.select_related("event", "leader").get(id=team_id)
        member = get_user_model().objects.get(id=member_id)
    except (Team.DoesNotExist, get_user_model().DoesNotExist):
        return

    try:
        send_team_joined_email(team, member)
    except Exception as e:
        logger.warning(f"Team joined email failed for team={team_id}: {e}")


@shared_task
def send_team_complete_email_task(team_id: int):
    try:
        team = Team.objects.select_related("event").get(id=team_id)
    except Team.DoesNotExist:
        return

    try:
        send_team_complete_email(team)
    except Exception as e:
        logger.warning(f"Team complete email failed for team={team_id}: {e}")
