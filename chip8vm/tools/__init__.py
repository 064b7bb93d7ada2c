# Tooling built on the shared opcode table.
