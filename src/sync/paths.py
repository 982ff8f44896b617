"""Store paths for one user's data."""

from pydantic import BaseModel, ConfigDict, Field


class UserPaths(BaseModel):
    """
    Logical store locations for one user, namespaced by app id:

        artifacts/{app_id}/users/{user_id}/settings/profile
        artifacts/{app_id}/users/{user_id}/tasks
        artifacts/{app_id}/users/{user_id}/transactions
    """
    model_config = ConfigDict(frozen=True)

    app_id: str = Field(..., min_length=1, pattern=r"^[^/]+$")
    user_id: str = Field(..., min_length=1, pattern=r"^[^/]+$")

    @property
    def user_root(self) -> str:
        return f"artifacts/{self.app_id}/users/{self.user_id}"

    @property
    def settings_document(self) -> str:
        return f"{self.user_root}/settings/profile"

    @property
    def tasks_collection(self) -> str:
        return f"{self.user_root}/tasks"

    @property
    def transactions_collection(self) -> str:
        return f"{self.user_root}/transactions"

    def task_document(self, task_id: str) -> str:
        return f"{self.tasks_collection}/{task_id}"
