"""python -m nodebingen 入口"""

from nodebingen.cli import main

if __name__ == "__main__":
    main()
