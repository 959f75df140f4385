import os
from typing import List, Optional

from chalicelib.utils.boto_clients import ses_client, sns_client
from chalicelib.utils.logger import logger


def send_email_ses(emails_to: List, email_from: str, subject: str, message: str):
    emails_to = [email for email in emails_to if email]
    if not emails_to:
        logger.warning(f'send_email_ses ::: no recipients, {subject=} is not sent')
        return None
    logger.info(f'Sending message to emails {emails_to=}, {subject=}')
    charset = "UTF-8"
    response = ses_client.send_email(
        Destination={"ToAddresses": emails_to},
        Message={
            "Body": {"Text": {"Charset": charset, "Data": message}},
            "Subject": {"Charset": charset, "Data": subject},
        },
        Source=email_from,
    )
    logger.info(f'Message has been sent, message_id={response.get("MessageId")}')
    return response.get("MessageId")


def publish_sns(topic_arn: Optional[str], message: str, subject: str = None, attributes: dict = None):
    """
    Publishes a message to SNS topic, the message is only logged if topic is not configured
    """
    if not topic_arn:
        logger.warning(f'publish_sns ::: topic is not configured, message is not published {message=}')
        return None
    kwargs = {'TopicArn': topic_arn, 'Message': message}
    if subject:
        kwargs['Subject'] = subject
    if attributes:
        kwargs['MessageAttributes'] = {
            key: {'DataType': 'String', 'StringValue': str(value)} for key, value in attributes.items()
        }
    response = sns_client.publish(**kwargs)
    logger.info(f'publish_sns ::: message published, message_id={response.get("MessageId")}')
    return response.get("MessageId")


def push_notifications_topic():
    return os.environ.get('PUSH_NOTIFICATIONS_TOPIC_ARN')


def order_events_topic():
    return os.environ.get('ORDER_EVENTS_TOPIC_ARN')
