"""
Punto de entrada: python -m ipmonitor

Delega en la misma app que el script de consola (ipmonitor.cli.app).
"""

from ipmonitor.cli.app import main

if __name__ == "__main__":
    main()
