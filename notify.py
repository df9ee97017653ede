# notify.py
# Servicio de email. Se inicializa una sola vez al arrancar la app.
import logging
import smtplib
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

logger = logging.getLogger(__name__)

_SMTP = {
    "enabled": False,
    "host": "",
    "port": 587,
    "user": "",
    "password": "",
    "from": "",
    "to": [],
}


def _as_bool(v):
    return str(v or "").strip().lower() in ("1", "true", "t", "si", "sí", "on", "yes", "y")


def init_email_service(config):
    """Lee NOTIFICATIONS_ENABLED y SMTP_* de la config de la app."""
    _SMTP["enabled"] = _as_bool(config.get("NOTIFICATIONS_ENABLED"))
    _SMTP["host"] = config.get("SMTP_HOST") or ""
    _SMTP["port"] = int(config.get("SMTP_PORT") or 587)
    _SMTP["user"] = config.get("SMTP_USER") or ""
    _SMTP["password"] = config.get("SMTP_PASS") or ""
    _SMTP["from"] = config.get("SMTP_FROM") or _SMTP["user"]
    _SMTP["to"] = [e.strip() for e in (config.get("ALERTS_TO") or "").split(",") if e.strip()]

    if not _SMTP["enabled"]:
        logger.info("Notificaciones por email: DESACTIVADO")
    elif not (_SMTP["host"] and _SMTP["user"] and _SMTP["password"]):
        logger.warning("Notificaciones por email activadas pero SMTP incompleto")
    else:
        logger.info("Notificaciones por email: ACTIVADO (%s:%s)", _SMTP["host"], _SMTP["port"])
    return _SMTP["enabled"]


def send_email(subject: str, html: str, to_list=None, attachment=None):
    """
    attachment: tuple (filename, bytes_data, mime_type) o None
    Devuelve (ok, detalle).
    """
    if not _SMTP["enabled"]:
        return False, "notifications disabled"

    to_list = to_list or _SMTP["to"]
    if not to_list or not _SMTP["host"] or not _SMTP["user"] or not _SMTP["password"]:
        return False, "SMTP not configured"

    remitente = _SMTP["from"]
    if "<" in remitente:
        name, addr = remitente.split("<")[0].strip(), remitente.split("<")[-1].rstrip(">").strip()
    else:
        name, addr = remitente, remitente

    if attachment:
        msg = MIMEMultipart()
        msg.attach(MIMEText(html, "html", "utf-8"))
        maintype, _, subtype = (attachment[2] or "application/octet-stream").partition("/")
        part = MIMEBase(maintype, subtype or "octet-stream")
        part.set_payload(attachment[1])
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", f'attachment; filename="{attachment[0]}"')
        msg.attach(part)
    else:
        msg = MIMEText(html, "html", "utf-8")

    msg["From"] = formataddr((name, addr))
    msg["To"] = ", ".join(to_list)
    msg["Subject"] = subject

    try:
        with smtplib.SMTP(_SMTP["host"], _SMTP["port"]) as s:
            s.starttls()
            s.login(_SMTP["user"], _SMTP["password"])
            s.sendmail(addr, to_list, msg.as_string())
        return True, "sent"
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Error enviando email '%s': %s", subject, e)
        return False, str(e)
