# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db tarugos.db
  python app.py torre config "A:1-4" "B:1-4" "C:1-3"
  python app.py item add --codigo 6063-178 --tipo tarugo --quantidade 40 --posicao A1
  python app.py item import entradas.xlsx
  python app.py ordem criar --item <item_id>:10 --empresa "Extrusora X"
  python app.py rel estoque --csv estoque.csv
"""

from tarugos.adapters.cli import main

if __name__ == "__main__":
    main()
