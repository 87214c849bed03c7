"""
Store-related email templates.
"""

from html import escape
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.emails.core import send_email


def render_custom_order_email(
    customer_name: str,
    customer_email: str,
    customer_phone: Optional[str],
    technology: str,
    description: str,
) -> tuple[str, str, str]:
    """Return (subject, plain body, html body) for a custom-order request."""
    subject = f"[Nuevo Pedido Personalizado] {customer_name}"
    sent_at = utc_now().strftime("%d/%m/%Y %H:%M UTC")
    phone = customer_phone or "No indicado"

    body = f"""Nuevo Pedido Personalizado Recibido

Se ha recibido una nueva solicitud desde la web.

Detalles del Cliente
Nombre: {customer_name}
Email: {customer_email}
Teléfono: {phone}

Detalles del Proyecto
Tecnología: {technology}
Descripción:
{description}

Enviado el: {sent_at}
"""

    description_html = "<br/>".join(escape(line) for line in description.split("\n"))
    html_body = f"""
<div style="font-family: Arial, sans-serif; color: #333;">
  <h2 style="color: #4f46e5;">Nuevo Pedido Personalizado Recibido</h2>
  <p>Se ha recibido una nueva solicitud desde la web.</p>
  <hr style="border: 1px solid #eee; margin: 20px 0;" />
  <h3>Detalles del Cliente</h3>
  <p><strong>Nombre:</strong> {escape(customer_name)}</p>
  <p><strong>Email:</strong> {escape(customer_email)}</p>
  <p><strong>Teléfono:</strong> {escape(phone)}</p>
  <h3>Detalles del Proyecto</h3>
  <p><strong>Tecnología:</strong> {escape(technology)}</p>
  <p><strong>Descripción:</strong></p>
  <blockquote style="background: #f9f9f9; padding: 15px; border-left: 4px solid #4f46e5;">
    {description_html}
  </blockquote>
  <p style="font-size: 12px; color: #888; margin-top: 30px;">Enviado el: {sent_at}</p>
</div>
"""
    return subject, body, html_body


async def send_custom_order_email(
    customer_name: str,
    customer_email: str,
    customer_phone: Optional[str],
    technology: str,
    description: str,
) -> bool:
    """
    Notify the store inbox of a custom-order request; replies go to the customer.
    """
    settings = get_settings()
    subject, body, html_body = render_custom_order_email(
        customer_name, customer_email, customer_phone, technology, description
    )
    return await send_email(
        to_email=settings.EMAIL_USER,
        subject=subject,
        body=body,
        html_body=html_body,
        reply_to=customer_email,
    )
