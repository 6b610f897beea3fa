"""Native renderer runtime binding."""

from .runtime import CtypesNativeRuntime, RuntimeBridge, RuntimeState, load_native_runtime

__all__ = ["CtypesNativeRuntime", "RuntimeBridge", "RuntimeState", "load_native_runtime"]
