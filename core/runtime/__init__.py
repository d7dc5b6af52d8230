# Rune Runtime Components
"""
The bundled virtual machine.

- result: Ok / Err returned across the capability boundary
- values: Value model and the operations on it
- builtins: Native functions callable from scripts
- vm: The stack machine itself
"""

from .result import Err, Ok, Result
