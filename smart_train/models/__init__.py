from smart_train.models.user import User
from smart_train.models.wallet import Wallet
from smart_train.models.wallet_transaction import WalletTransaction
from smart_train.models.ticket import Ticket
from smart_train.models.ticket_payment import TicketPayment
