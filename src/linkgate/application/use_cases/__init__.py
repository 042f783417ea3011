from .default_script import DefaultScriptUseCase
from .download_link import DownloadLinkUseCase
from .script_verification import ScriptVerificationUseCase

__all__ = ["DefaultScriptUseCase", "DownloadLinkUseCase", "ScriptVerificationUseCase"]
