"""
Runtime boundary shared by the generated code and the C runtime.

The compiled object exports ENTRY_SYMBOL and calls PRINT_SYMBOL exactly
once with the final statement's value. The runtime below supplies both
ends: ``main`` calls the entry routine, and the print routine writes the
value in decimal and exits with status 0.
"""

ENTRY_SYMBOL = "evaluate"
PRINT_SYMBOL = "print_int_and_exit"

RUNTIME_C_SOURCE = f"""\
#include <stdint.h>
#include <stdio.h>
#include <stdlib.h>

void {ENTRY_SYMBOL}(void);

void {PRINT_SYMBOL}(int64_t value)
{{
    printf("%lld\\n", (long long)value);
    exit(0);
}}

int main(void)
{{
    {ENTRY_SYMBOL}();
    /* the generated code never returns here */
    fputs("{ENTRY_SYMBOL}() returned without printing a value\\n", stderr);
    return 1;
}}
"""


def mangle(symbol: str, prefix: str = "") -> str:
    """Apply a target's global symbol prefix (``_`` on Mach-O)."""
    return f"{prefix}{symbol}"
