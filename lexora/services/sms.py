"""
SMS notifications through the notify.lk gateway.
"""

import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

import aiohttp

from lexora.config import settings

logger = logging.getLogger(__name__)

# Failures of one gateway call: network, total timeout, non-JSON body
GATEWAY_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ValueError)


class SmsError(Exception):
    """Raised when an SMS that must be delivered could not be sent."""
    pass


def format_mobile_number(mobile_number: str) -> Optional[str]:
    """
    Convert a Sri Lankan mobile number to the 94XXXXXXXXX form.

    Returns None if the number is in neither local nor international form.
    """
    if mobile_number.startswith("0") and len(mobile_number) == 10:
        return f"94{mobile_number[1:]}"
    if mobile_number.startswith("94") and len(mobile_number) == 11:
        return mobile_number
    return None


def build_token_message(
    customer_name: str,
    token_serial: str,
    salesman_name: str,
    sale_date: datetime,
    down_payment: Optional[Decimal] = None,
) -> str:
    if down_payment:
        payment_text = f"Your down payment of LKR {down_payment:,.2f} has been received."
    else:
        payment_text = "Your registration is confirmed."
    return (
        f"Dear {customer_name}, Welcome to LEXORA! Your token no is {token_serial}. "
        f"{payment_text} Date: {sale_date:%Y-%m-%d %H:%M}. Salesman: {salesman_name}."
    )


def _accepted(result) -> bool:
    return isinstance(result, dict) and result.get("status") == "success"


async def _call_gateway(to: str, message: str):
    """Send one message and return the decoded JSON body, whatever its shape."""
    params = {
        "user_id": settings.notify_user_id,
        "api_key": settings.notify_api_key,
        "sender_id": settings.notify_sender_id,
        "to": to,
        "message": message,
    }
    async with aiohttp.ClientSession() as session:
        async with session.get(
            settings.notify_base_url,
            params=params,
            timeout=aiohttp.ClientTimeout(total=30),
        ) as response:
            return await response.json(content_type=None)


async def send_token_sms(
    customer_name: str,
    customer_contact: str,
    token_serial: str,
    salesman_name: str,
    sale_date: datetime,
    down_payment: Optional[Decimal] = None,
) -> bool:
    """
    Send the token registration notice to a customer.

    Never raises: the registration is already committed when this runs.

    Returns:
        True if the gateway accepted the message
    """
    if not settings.sms_configured:
        logger.warning("SMS credentials are not configured. Skipping SMS.")
        return False

    to = format_mobile_number(customer_contact)
    if not to:
        logger.warning(f"Invalid phone number format: {customer_contact}. Cannot send SMS.")
        return False

    message = build_token_message(
        customer_name, token_serial, salesman_name, sale_date, down_payment
    )
    try:
        result = await _call_gateway(to, message)
    except Exception as e:
        logger.error(f"Error sending registration SMS: {e}")
        return False

    if not _accepted(result):
        logger.error(f"notify.lk rejected registration SMS: {result}")
        return False

    logger.info(f"Sent registration SMS for token {token_serial} to {to}")
    return True


async def send_otp_sms(mobile_number: str, otp: str) -> None:
    """
    Send a verification code.

    Raises:
        SmsError: credentials missing, number invalid, or gateway failure
    """
    if not settings.sms_configured:
        raise SmsError("SMS credentials are not configured.")

    to = format_mobile_number(mobile_number)
    if not to:
        raise SmsError(f"Invalid phone number format: {mobile_number}.")

    try:
        result = await _call_gateway(to, f"Your LEXORA verification code is: {otp}")
    except GATEWAY_ERRORS as e:
        logger.error(f"Error sending OTP SMS: {e}")
        raise SmsError("An external error occurred while sending the OTP.") from e

    if not _accepted(result):
        logger.error(f"notify.lk rejected OTP SMS: {result}")
        detail = result.get("data") if isinstance(result, dict) else None
        raise SmsError(f"SMS provider error: {detail or 'Unknown error'}")

    logger.info(f"Sent OTP SMS to {to}")
