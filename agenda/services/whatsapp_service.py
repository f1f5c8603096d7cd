"""
Twilio WhatsApp Service
Delivers appointment reminders over WhatsApp
"""

import logging
from typing import Optional

import httpx

from ..config import TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_WHATSAPP_FROM

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


def format_reminder(
    patient_name: str, date_str: str, time_str: str, reschedule_url: Optional[str] = None
) -> str:
    body = (
        f"Olá! Lembrete: {patient_name} tem sessão agendada amanhã, "
        f"{date_str}, às {time_str}."
    )
    if reschedule_url:
        body += f"\nPara confirmar presença ou remarcar: {reschedule_url}"
    return body


class WhatsAppSender:
    """Sends reminder messages through Twilio's WhatsApp channel"""

    def __init__(self, account_sid: str, auth_token: str, from_number: str, timeout: float = 10.0):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.timeout = timeout

    @staticmethod
    def _whatsapp_address(phone: str) -> str:
        return phone if phone.startswith("whatsapp:") else f"whatsapp:{phone}"

    async def send_reminder(
        self,
        phone: str,
        patient_name: str,
        date_str: str,
        time_str: str,
        reschedule_url: Optional[str] = None,
    ) -> tuple[bool, Optional[str]]:
        """
        Send one reminder.

        Args:
            phone: Recipient in E.164 format
            patient_name: Name shown in the message
            date_str: Appointment date (dd/mm/yyyy)
            time_str: Appointment start (HH:MM)
            reschedule_url: Optional link to confirm/reschedule

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        if not phone or not phone.startswith("+"):
            logger.warning(f"Phone number not in E.164 format: {phone}")
            return False, "Phone number must be in E.164 format (e.g., +5511999999999)"

        data = {
            "From": self._whatsapp_address(self.from_number),
            "To": self._whatsapp_address(phone),
            "Body": format_reminder(patient_name, date_str, time_str, reschedule_url),
        }

        try:
            logger.info(f"🚀 Sending WhatsApp reminder to {phone}")
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    TWILIO_MESSAGES_URL.format(sid=self.account_sid),
                    auth=(self.account_sid, self.auth_token),
                    data=data,
                    timeout=self.timeout,
                )

            if response.status_code in [200, 201]:
                message_sid = response.json().get("sid")
                logger.info(f"✅ WhatsApp reminder sent to {phone} (SID: {message_sid})")
                return True, None

            error_data = response.json()
            error_message = error_data.get("message", "Unknown error")
            error_code = error_data.get("code")
            logger.error(f"❌ Twilio API error [{error_code}]: {error_message}")
            return False, error_message

        except httpx.HTTPError as e:
            logger.error(f"Twilio API error: {str(e)}")
            return False, str(e)
        except ValueError as e:
            logger.error(f"Unreadable Twilio response: {str(e)}")
            return False, str(e)


def default_sender() -> Optional[WhatsAppSender]:
    """Sender built from config, or None when Twilio is not configured"""
    if not (TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and TWILIO_WHATSAPP_FROM):
        return None
    return WhatsAppSender(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_WHATSAPP_FROM)
