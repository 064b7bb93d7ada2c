# CPU core: register file, opcode table and ALU helpers.
