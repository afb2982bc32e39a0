"""JIT stacks and JIT memory housekeeping."""

from __future__ import annotations

from ._bindings import call_jit_free_unused_memory, call_jit_stack_create, call_jit_stack_free
from ._native import Pcre2Library
from ._resource import NativeResource
from .contexts import GeneralContext, _resolve

__all__ = ["JitStack", "jit_free_unused_memory"]

# Engine default JIT stack is 32 KiB
JIT_STACK_START = 32 * 1024
JIT_STACK_MAX = 512 * 1024


class JitStack(NativeResource):
    """
    A JIT stack for patterns that recurse deeper than the default 32 KiB allows.

    Assign it with :meth:`MatchContext.assign_jit_stack`. The stack is owned
    here, not by the contexts it is assigned to, and may be shared by
    several contexts as long as they are not used concurrently.

    Args:
        start_size: Initial size in bytes.
        max_size: Maximum size in bytes the stack may grow to.
        general: Optional general context used for the allocation.
    """

    _kind = "jit_stack"

    def __init__(
        self,
        start_size: int = JIT_STACK_START,
        max_size: int = JIT_STACK_MAX,
        general: GeneralContext | None = None,
        lib: Pcre2Library | None = None,
    ):
        lib, general_ptr = _resolve(general, lib)
        ptr = call_jit_stack_create(lib, start_size, max_size, general_ptr)
        super().__init__(ptr, lib)
        self.start_size = start_size
        self.max_size = max_size

    def _release(self, ptr: int) -> None:
        call_jit_stack_free(self._lib, ptr)


def jit_free_unused_memory(
    general: GeneralContext | None = None, lib: Pcre2Library | None = None
) -> None:
    """Return unused JIT executable memory to the system."""
    call_jit_free_unused_memory(*_resolve(general, lib))
