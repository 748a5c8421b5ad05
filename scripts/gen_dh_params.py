#!/usr/bin/env python3
"""
Generate Diffie-Hellman Domain Parameters

Creates fresh PKCS#3 DH parameters and writes them as PEM, for use with
DH_PARAMS_PATH instead of the built-in MODP groups. Generation of a
2048-bit group can take a while.

Usage:
    python scripts/gen_dh_params.py --bits 2048 --output params/dh2048.pem
"""

import argparse
import os
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dh


def generate_dh_params(key_size: int = 2048, generator: int = 2,
                       output_path: str = "params/dh_params.pem"):
    """
    Generate DH parameters and save them to a PEM file.

    Args:
        key_size: Modulus size in bits (at least 1024)
        generator: Group generator (2 or 5)
        output_path: Destination file

    Returns:
        The generated DH parameters
    """
    if key_size < 1024:
        raise ValueError("Key size must be at least 1024 bits")

    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    print(f"[*] Generating {key_size}-bit DH parameters (g = {generator})...")
    parameters = dh.generate_parameters(generator=generator, key_size=key_size)

    with open(output_path, "wb") as f:
        f.write(
            parameters.parameter_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.ParameterFormat.PKCS3,
            )
        )
    print(f"[+] DH parameters saved to: {output_path}")

    print(f"\n[✓] DH parameters created successfully!")
    print(f"    Prime size: {parameters.parameter_numbers().p.bit_length()} bits")
    print(f"    Use with: DH_PARAMS_PATH={output_path}")

    return parameters


def main():
    parser = argparse.ArgumentParser(
        description="Generate Diffie-Hellman domain parameters for SecureLink"
    )
    parser.add_argument(
        "--bits",
        type=int,
        default=2048,
        help="Prime size in bits (default: 2048)"
    )
    parser.add_argument(
        "--generator",
        type=int,
        choices=[2, 5],
        default=2,
        help="Generator (default: 2)"
    )
    parser.add_argument(
        "--output",
        default="params/dh_params.pem",
        help="Output file (default: params/dh_params.pem)"
    )

    args = parser.parse_args()

    generate_dh_params(
        key_size=args.bits,
        generator=args.generator,
        output_path=args.output
    )


if __name__ == "__main__":
    main()
