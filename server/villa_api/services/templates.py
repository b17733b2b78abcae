"""Message templates for guest and administrator notifications.

WhatsApp and SMS bodies are plain text in Italian, the language of the
villa's guests and staff. Email bodies are HTML.
"""

from datetime import datetime
from html import escape
from typing import NamedTuple

from ..core.config import settings


class EmailContent(NamedTuple):
    subject: str
    html: str


def format_date(value: datetime) -> str:
    """Render a stay date the way Italian guests read it (dd/mm/yyyy)."""
    return value.strftime("%d/%m/%Y")


def render_placeholders(content: str, name: str, email: str) -> str:
    """Substitute ``{{name}}`` and ``{{email}}`` in admin-authored content."""
    return content.replace("{{name}}", name).replace("{{email}}", email)


def _wrap_html(title: str, body: str) -> str:
    return (
        "<div style=\"font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;\">"
        f"<h2 style=\"color: #1e6091;\">{escape(title)}</h2>"
        f"{body}"
        f"<p style=\"color: #888; font-size: 12px;\">{escape(settings.site_name)} &middot; "
        f"<a href=\"{settings.site_url}\">{settings.site_url}</a></p>"
        "</div>"
    )


# WhatsApp

def booking_confirmation_whatsapp(guest_name: str, check_in: datetime, check_out: datetime) -> str:
    return (
        f"🏖️ *{settings.site_name} - Conferma Prenotazione*\n\n"
        f"Ciao {guest_name}! 👋\n\n"
        f"Grazie per aver scelto {settings.site_name} per la tua vacanza!\n\n"
        f"📅 *Check-in:* {format_date(check_in)}\n"
        f"📅 *Check-out:* {format_date(check_out)}\n"
        "🏡 *Location:* Leporano Marina, a 300m dal mare\n\n"
        "Ti invieremo tutte le informazioni dettagliate via email.\n"
        "Per qualsiasi domanda, rispondi a questo messaggio!\n\n"
        "🌊 Non vediamo l'ora di accoglierti! 🌊"
    )


def welcome_whatsapp(guest_name: str) -> str:
    return (
        f"🏖️ *Benvenuto/a alla {settings.site_name}!*\n\n"
        f"Ciao {guest_name}! 👋\n\n"
        "Siamo felici di averti come nostro ospite!\n"
        "📍 La villa si trova a 300m dalle spiagge ioniche\n"
        "🅿️ Parcheggio privato incluso\n"
        "📶 WiFi gratuito\n\n"
        "Buona vacanza! 🌴☀️"
    )


def checkout_reminder_whatsapp(guest_name: str, check_out: datetime) -> str:
    return (
        f"🏖️ *{settings.site_name} - Promemoria Check-out*\n\n"
        f"Ciao {guest_name}! 👋\n\n"
        f"Ti ricordiamo che il check-out è previsto per domani: {format_date(check_out)}\n\n"
        "⏰ Orario check-out: entro le 10:00\n"
        "🧳 Lascia le chiavi sul tavolo della cucina\n\n"
        "Speriamo che tu abbia trascorso una vacanza indimenticabile!\n"
        "Grazie e a presto! 🌊✨"
    )


def admin_new_booking_whatsapp(guest_name: str, check_in: datetime) -> str:
    return (
        f"🔔 *Nuova Prenotazione - {settings.site_name}*\n\n"
        f"📝 Nuovo ospite: {guest_name}\n"
        f"📅 Check-in: {format_date(check_in)}\n\n"
        "Controlla i dettagli completi nel pannello admin."
    )


# SMS

def booking_confirmation_sms(guest_name: str, check_in: datetime, check_out: datetime) -> str:
    return (
        f"{settings.site_name} - Conferma Prenotazione\n"
        f"Ciao {guest_name}!\n"
        f"Check-in: {format_date(check_in)}\n"
        f"Check-out: {format_date(check_out)}\n"
        "Dettagli via email. Per info rispondi a questo SMS.\n"
        "Ti aspettiamo!"
    )


def checkout_reminder_sms(guest_name: str, check_out: datetime) -> str:
    return (
        f"{settings.site_name} - Check-out\n"
        f"Ciao {guest_name}!\n"
        f"Check-out domani: {format_date(check_out)} entro le 10:00.\n"
        "Lascia le chiavi sul tavolo.\n"
        "Grazie per aver soggiornato con noi!"
    )


def admin_new_booking_sms(guest_name: str, check_in: datetime) -> str:
    return (
        f"{settings.site_name} - Nuova Prenotazione\n"
        f"Ospite: {guest_name}\n"
        f"Check-in: {format_date(check_in)}\n"
        "Controlla il pannello admin."
    )


# Email

def welcome_email(guest_name: str) -> EmailContent:
    body = (
        f"<p>Ciao {escape(guest_name)},</p>"
        f"<p>grazie per esserti registrato su {escape(settings.site_name)}. "
        "Dal tuo account puoi prenotare il soggiorno, seguire lo stato delle prenotazioni "
        "e scriverci in chat.</p>"
        "<p>A presto!</p>"
    )
    return EmailContent(
        subject=f"Benvenuto/a su {settings.site_name}",
        html=_wrap_html(f"Benvenuto/a su {settings.site_name}", body),
    )


def booking_confirmation_email(
    guest_name: str,
    check_in: datetime,
    check_out: datetime,
    number_of_guests: int,
    booking_id: int,
) -> EmailContent:
    body = (
        f"<p>Ciao {escape(guest_name)},</p>"
        "<p>abbiamo ricevuto la tua richiesta di prenotazione:</p>"
        "<ul>"
        f"<li><strong>Prenotazione n.</strong> {booking_id}</li>"
        f"<li><strong>Check-in:</strong> {format_date(check_in)}</li>"
        f"<li><strong>Check-out:</strong> {format_date(check_out)}</li>"
        f"<li><strong>Ospiti:</strong> {number_of_guests}</li>"
        "</ul>"
        "<p>Ti contatteremo a breve per confermare la disponibilità.</p>"
    )
    return EmailContent(
        subject=f"{settings.site_name} - Richiesta di prenotazione #{booking_id}",
        html=_wrap_html("Richiesta di prenotazione ricevuta", body),
    )


def new_user_admin_email(username: str, full_name: str, email: str) -> EmailContent:
    body = (
        "<p>Un nuovo utente si è registrato sul sito.</p>"
        "<ul>"
        f"<li><strong>Username:</strong> {escape(username)}</li>"
        f"<li><strong>Nome:</strong> {escape(full_name)}</li>"
        f"<li><strong>Email:</strong> {escape(email)}</li>"
        "</ul>"
    )
    return EmailContent(
        subject=f"Nuova registrazione: {username}",
        html=_wrap_html("Nuova registrazione", body),
    )


def contact_notification_email(name: str, email: str, subject: str, message: str) -> EmailContent:
    body = (
        f"<p><strong>Da:</strong> {escape(name)} &lt;{escape(email)}&gt;</p>"
        f"<p><strong>Oggetto:</strong> {escape(subject)}</p>"
        f"<p style=\"white-space: pre-wrap;\">{escape(message)}</p>"
    )
    return EmailContent(
        subject=f"Nuovo messaggio dal sito: {subject}",
        html=_wrap_html("Nuovo messaggio di contatto", body),
    )


def password_reset_email(guest_name: str, reset_url: str) -> EmailContent:
    body = (
        f"<p>Ciao {escape(guest_name)},</p>"
        "<p>abbiamo ricevuto una richiesta di reimpostazione della password. "
        f"Il link è valido per {settings.password_reset_expiry_minutes} minuti:</p>"
        f"<p><a href=\"{escape(reset_url)}\">Reimposta la password</a></p>"
        "<p>Se non hai richiesto tu il reset, ignora questa email.</p>"
    )
    return EmailContent(
        subject=f"{settings.site_name} - Reimpostazione password",
        html=_wrap_html("Reimpostazione password", body),
    )
