"""
Messaging declarations: the validation queue and its optional fan-out topic.
"""

from dataclasses import dataclass

from aws_cdk import CfnOutput
from aws_cdk import aws_sns as sns
from aws_cdk import aws_sns_subscriptions as subs
from aws_cdk import aws_sqs as sqs

from infra.context import BuildContext, require


@dataclass(frozen=True)
class MessagingHandles:
    """The validation queue and, when declared, the topic feeding it."""

    queue: sqs.Queue
    topic: sns.Topic | None = None

    @property
    def has_topic(self) -> bool:
        return self.topic is not None

    def queue_arns(self) -> list[str]:
        return [require(self.queue, "queue:validation").queue_arn]

    def topic_arns(self) -> list[str]:
        return [self.topic.topic_arn] if self.topic is not None else []


def _create_queue(ctx: BuildContext) -> sqs.Queue:
    queue = sqs.Queue(
        ctx.scope,
        "QueueValidation",
        queue_name=ctx.name("ValidationQueue"),
        encryption=sqs.QueueEncryption.UNENCRYPTED,
    )
    CfnOutput(
        ctx.scope,
        "ValidationQueueArn",
        value=queue.queue_arn,
        description="The arn for the validation queue",
    )
    return queue


def _create_topic(ctx: BuildContext, queue: sqs.Queue) -> sns.Topic:
    topic = sns.Topic(
        ctx.scope,
        "TopicValidation",
        topic_name=ctx.name("ValidationTopic"),
    )
    topic.add_subscription(subs.SqsSubscription(require(queue, "queue:validation")))
    CfnOutput(
        ctx.scope,
        "ValidationTopicArn",
        value=topic.topic_arn,
        description="The arn for the validation topic",
    )
    return topic


def create_messaging(ctx: BuildContext) -> MessagingHandles:
    """
    Declare the validation queue and, if configured, a topic subscribed to it.

    Without a topic, producers publish straight to the queue.
    """
    queue = _create_queue(ctx)
    topic = _create_topic(ctx, queue) if ctx.config.fanout_topic else None
    ctx.log("Declared messaging", fanout_topic=topic is not None)
    return MessagingHandles(queue=queue, topic=topic)
