"""
Sync Package

Everything between the services and the presentation shell: identity
bootstrap, realtime channels over the document store, the settings store,
the mutation gateway, and the voice and alarm adapters.
"""

from src.sync.alarm import AlarmPlayer
from src.sync.background import BackgroundTasks
from src.sync.bootstrap import IdentityBootstrap, IdentityState
from src.sync.channel import (
    CollectionChannel,
    create_task_channel,
    create_transaction_channel,
)
from src.sync.gateway import MutationGateway, epoch_millis
from src.sync.paths import UserPaths
from src.sync.settings_store import SettingsStore
from src.sync.subscription import Subscription
from src.sync.voice import VoiceCaptureAdapter, VoiceOutcome, VoiceState

__all__ = [
    "AlarmPlayer",
    "BackgroundTasks",
    "CollectionChannel",
    "IdentityBootstrap",
    "IdentityState",
    "MutationGateway",
    "SettingsStore",
    "Subscription",
    "UserPaths",
    "VoiceCaptureAdapter",
    "VoiceOutcome",
    "VoiceState",
    "create_task_channel",
    "create_transaction_channel",
    "epoch_millis",
]
