from __future__ import annotations

from abc import ABC, abstractmethod


class OAuthPort(ABC):
    @abstractmethod
    def oauth_login(self, id_token: str) -> str:
        """Exchange an identity token for a portal auth token. Raises AuthenticationError when rejected."""
        raise NotImplementedError
