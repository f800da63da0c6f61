"""
Condo Billing - CLI Admin
Ferramenta de linha de comando para faturas e limites

Uso:
    python admin_cli.py login
    python admin_cli.py invoices list [status]
    python admin_cli.py invoices stats
    python admin_cli.py invoices pay <invoice_id> <metodo> [referencia]
    python admin_cli.py invoices create <condominium_id> <valor> <vencimento> [descricao]
    python admin_cli.py usage <condominium_id>
    python admin_cli.py rollover
"""
import os
import sys
import httpx
from pathlib import Path

BASE_URL = os.getenv("BILLING_API_URL", "http://localhost:8080")
TOKEN_FILE = Path(".admin_token")

STATUS_LABELS = {"pending": "Pendente", "overdue": "Vencida", "paid": "Paga"}


def save_token(token: str):
    TOKEN_FILE.write_text(token)


def load_token() -> str:
    if TOKEN_FILE.exists():
        return TOKEN_FILE.read_text().strip()
    return None


def get_headers():
    token = load_token()
    if not token:
        print("Erro: Faça login primeiro com 'python admin_cli.py login'")
        sys.exit(1)
    return {"Authorization": f"Bearer {token}"}


def error_message(response: httpx.Response) -> str:
    """Mensagem de erro da API (erros de domínio ou HTTPException)"""
    try:
        data = response.json()
    except ValueError:
        return response.text
    return data.get("message") or data.get("detail") or response.text


def brl(value) -> str:
    return f"R$ {float(value):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


def cmd_login():
    """Login no sistema"""
    email = input("Email [admin@condo-billing.com]: ").strip() or "admin@condo-billing.com"
    password = input("Senha: ").strip()

    try:
        response = httpx.post(
            f"{BASE_URL}/api/auth/login",
            json={"email": email, "password": password}
        )
        if response.status_code == 200:
            data = response.json()
            save_token(data["access_token"])
            print(f"\n✓ Login bem sucedido!")
            print(f"  Usuário: {data['user']['email']}")
        else:
            print(f"✗ Erro: {error_message(response)}")
    except httpx.HTTPError as e:
        print(f"✗ Erro de conexão: {e}")


def cmd_invoices_list(status: str = None):
    """Lista faturas"""
    params = {"status": status} if status else {}
    try:
        response = httpx.get(f"{BASE_URL}/api/invoices", params=params, headers=get_headers())
        if response.status_code == 200:
            invoices = response.json()
            print(f"\n{'='*96}")
            print(f"{'Número':<14} | {'ID':<36} | {'Valor':>12} | {'Status':<9} | {'Vencimento':<10}")
            print(f"{'='*96}")
            for inv in invoices:
                label = STATUS_LABELS.get(inv["effective_status"], inv["effective_status"])
                print(f"{inv['invoice_number']:<14} | {inv['id']:<36} | {brl(inv['amount']):>12} | "
                      f"{label:<9} | {inv['due_date']:<10}")
                if inv.get("discount_value"):
                    print(f"{'':<14}   desconto {brl(inv['discount_value'])} (original {brl(inv['original_amount'])})")
            print(f"\nTotal: {len(invoices)} faturas")
        else:
            print(f"✗ Erro: {error_message(response)}")
    except httpx.HTTPError as e:
        print(f"✗ Erro: {e}")


def cmd_invoices_stats():
    """Mostra estatísticas das faturas"""
    try:
        response = httpx.get(f"{BASE_URL}/api/invoices/stats", headers=get_headers())
        if response.status_code == 200:
            stats = response.json()
            print(f"\n{'='*40}")
            print(f"  ESTATÍSTICAS DE FATURAS")
            print(f"{'='*40}")
            print(f"  Pendentes: {stats['pending']['count']} ({brl(stats['pending']['total'])})")
            print(f"  Vencidas:  {stats['overdue']['count']} ({brl(stats['overdue']['total'])})")
            print(f"  Pagas:     {stats['paid']['count']} ({brl(stats['paid']['total'])})")
            print(f"  Este mês:  {stats['this_month']['count']} ({brl(stats['this_month']['total'])})")
            print(f"{'='*40}")
        else:
            print(f"✗ Erro: {error_message(response)}")
    except httpx.HTTPError as e:
        print(f"✗ Erro: {e}")


def cmd_invoices_pay(invoice_id: str, method: str, reference: str = None):
    """Registra pagamento manual"""
    try:
        response = httpx.post(
            f"{BASE_URL}/api/invoices/{invoice_id}/pay",
            json={"payment_method": method, "payment_reference": reference},
            headers=get_headers()
        )
        if response.status_code == 200:
            inv = response.json()
            print(f"✓ Fatura {inv['invoice_number']} marcada como paga em {inv['paid_at'][:10]}")
        else:
            print(f"✗ Erro: {error_message(response)}")
    except httpx.HTTPError as e:
        print(f"✗ Erro: {e}")


def cmd_invoices_create(condominium_id: str, amount: str, due_date: str, description: str = None):
    """Cria fatura avulsa"""
    try:
        response = httpx.post(
            f"{BASE_URL}/api/invoices",
            json={
                "condominium_id": condominium_id,
                "amount": amount.replace(",", "."),
                "due_date": due_date,
                "description": description
            },
            headers=get_headers()
        )
        if response.status_code == 201:
            inv = response.json()
            print(f"\n✓ Fatura criada!")
            print(f"  Número: {inv['invoice_number']}")
            print(f"  Valor: {brl(inv['amount'])}")
            print(f"  Vencimento: {inv['due_date']}")
        else:
            print(f"✗ Erro: {error_message(response)}")
    except httpx.HTTPError as e:
        print(f"✗ Erro: {e}")


def cmd_usage(condominium_id: str):
    """Mostra uso do período atual"""
    try:
        response = httpx.get(f"{BASE_URL}/api/subscriptions/{condominium_id}", headers=get_headers())
        if response.status_code == 200:
            data = response.json()
            sub = data["subscription"]
            print(f"\n{'='*50}")
            print(f"  Plano: {sub['plan']}  (ativo: {data['status']['is_active']})")
            print(f"  Período até: {(sub['current_period_end'] or 'N/A')[:10]}")
            print(f"{'='*50}")
            for kind, usage in data["usage"].items():
                limit = "ilimitado" if usage["unlimited"] else usage["limit"] + usage["extra"]
                print(f"  {kind:<22} {usage['used']:>6} / {limit}")
            print(f"{'='*50}")
        else:
            print(f"✗ Erro: {error_message(response)}")
    except httpx.HTTPError as e:
        print(f"✗ Erro: {e}")


def cmd_rollover():
    """Executa a virada de período agora"""
    try:
        response = httpx.post(f"{BASE_URL}/api/jobs/rollover", headers=get_headers(), timeout=120)
        if response.status_code == 200:
            result = response.json()
            print(f"✓ {result['processed']} assinaturas processadas, {result['invoices_created']} faturas geradas")
            for err in result["errors"]:
                print(f"  ✗ {err['subscription_id']}: {err['error']}")
        else:
            print(f"✗ Erro: {error_message(response)}")
    except httpx.HTTPError as e:
        print(f"✗ Erro: {e}")


def print_help():
    print("""
Condo Billing - CLI Admin
=========================

Comandos disponíveis:

  python admin_cli.py login                                  - Fazer login
  python admin_cli.py invoices list [pending|overdue|paid]   - Listar faturas
  python admin_cli.py invoices stats                         - Ver estatísticas
  python admin_cli.py invoices pay <id> <metodo> [ref]       - Baixa manual
  python admin_cli.py invoices create <condominio> <valor> <AAAA-MM-DD> [descricao]
                                                             - Fatura avulsa
  python admin_cli.py usage <condominio>                     - Uso do período
  python admin_cli.py rollover                               - Virada de período agora

Exemplos:
  python admin_cli.py invoices list overdue
  python admin_cli.py invoices pay 6f1c...-uuid pix E2E123
  python admin_cli.py invoices create 9a2b...-uuid 49,90 2026-12-10 "Ajuste de plano"
""")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print_help()
        sys.exit(0)

    cmd = sys.argv[1].lower()

    if cmd == "login":
        cmd_login()
    elif cmd == "invoices":
        if len(sys.argv) < 3:
            print("Uso: invoices [list|stats|pay|create]")
        elif sys.argv[2] == "list":
            cmd_invoices_list(sys.argv[3] if len(sys.argv) > 3 else None)
        elif sys.argv[2] == "stats":
            cmd_invoices_stats()
        elif sys.argv[2] == "pay" and len(sys.argv) >= 5:
            cmd_invoices_pay(sys.argv[3], sys.argv[4], sys.argv[5] if len(sys.argv) > 5 else None)
        elif sys.argv[2] == "create" and len(sys.argv) >= 6:
            cmd_invoices_create(sys.argv[3], sys.argv[4], sys.argv[5], sys.argv[6] if len(sys.argv) > 6 else None)
        else:
            print_help()
    elif cmd == "usage" and len(sys.argv) >= 3:
        cmd_usage(sys.argv[2])
    elif cmd == "rollover":
        cmd_rollover()
    elif cmd == "help":
        print_help()
    else:
        print(f"Comando desconhecido: {cmd}")
        print_help()
