from .sender import ConsoleMailSender, MailSender, SmtpMailSender, build_message, create_sender

__all__ = ["ConsoleMailSender", "MailSender", "SmtpMailSender", "build_message", "create_sender"]
