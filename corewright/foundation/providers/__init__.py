from corewright.foundation.providers.foundation import FoundationServiceProvider

__all__ = ["FoundationServiceProvider"]
