"""
Minimal contract ABIs used by the facilitator
Only the functions and events the facilitator reads, writes or decodes
"""

# Shared struct components
PAYMENT_INTENT_COMPONENTS = [
    {"name": "x402Nonce", "type": "bytes32"},
    {"name": "payer", "type": "address"},
    {"name": "token", "type": "address"},
    {"name": "amount", "type": "uint256"},
    {"name": "listingId", "type": "uint256"},
    {"name": "seller", "type": "address"},
    {"name": "deadline", "type": "uint256"},
]

ERC3009_AUTH_COMPONENTS = [
    {"name": "from", "type": "address"},
    {"name": "token", "type": "address"},
    {"name": "amount", "type": "uint256"},
    {"name": "validAfter", "type": "uint256"},
    {"name": "validBefore", "type": "uint256"},
    {"name": "eip3009Nonce", "type": "bytes32"},
]

REPUTATION_ABI = [
    {
        "inputs": [{"name": "user", "type": "address"}],
        "name": "getScore",
        "outputs": [
            {"name": "score", "type": "uint256"},
            {"name": "tier", "type": "uint8"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "user", "type": "address"}],
        "name": "getReputationData",
        "outputs": [
            {
                "name": "",
                "type": "tuple",
                "components": [
                    {"name": "score", "type": "uint256"},
                    {"name": "completions", "type": "uint256"},
                    {"name": "disputesLost", "type": "uint256"},
                    {"name": "disputesWon", "type": "uint256"},
                    {"name": "firstActivityTimestamp", "type": "uint256"},
                ],
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
]

STAKING_ABI = [
    {
        "inputs": [{"name": "user", "type": "address"}],
        "name": "getTier",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "user", "type": "address"}],
        "name": "getStake",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]

# USDC balance + EIP-3009 transferWithAuthorization
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
    },
    {
        "inputs": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "value", "type": "uint256"},
            {"name": "validAfter", "type": "uint256"},
            {"name": "validBefore", "type": "uint256"},
            {"name": "nonce", "type": "bytes32"},
            {"name": "v", "type": "uint8"},
            {"name": "r", "type": "bytes32"},
            {"name": "s", "type": "bytes32"},
        ],
        "name": "transferWithAuthorization",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [
            {"name": "authorizer", "type": "address"},
            {"name": "nonce", "type": "bytes32"},
        ],
        "name": "authorizationState",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
]

ESCROW_BRIDGE_ABI = [
    {
        "inputs": [
            {"name": "intent", "type": "tuple", "components": PAYMENT_INTENT_COMPONENTS},
            {"name": "v", "type": "uint8"},
            {"name": "r", "type": "bytes32"},
            {"name": "s", "type": "bytes32"},
        ],
        "name": "depositAndCreateJob",
        "outputs": [{"name": "jobId", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "auth", "type": "tuple", "components": ERC3009_AUTH_COMPONENTS},
            {"name": "v", "type": "uint8"},
            {"name": "r", "type": "bytes32"},
            {"name": "s", "type": "bytes32"},
            {"name": "intent", "type": "tuple", "components": PAYMENT_INTENT_COMPONENTS},
            {"name": "intentV", "type": "uint8"},
            {"name": "intentR", "type": "bytes32"},
            {"name": "intentS", "type": "bytes32"},
        ],
        "name": "depositWithAuthorization",
        "outputs": [{"name": "jobId", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"name": "", "type": "bytes32"}],
        "name": "nonceUsed",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "x402Nonce", "type": "bytes32"},
            {"indexed": True, "name": "jobId", "type": "uint256"},
            {"indexed": True, "name": "payer", "type": "address"},
            {"indexed": False, "name": "seller", "type": "address"},
            {"indexed": False, "name": "amount", "type": "uint256"},
            {"indexed": False, "name": "token", "type": "address"},
        ],
        "name": "EscrowedJobCreated",
        "type": "event",
    },
]

CREDIT_FACILITY_ABI = [
    {
        "inputs": [
            {"name": "agent", "type": "address"},
            {"name": "listingId", "type": "uint256"},
            {"name": "seller", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "drawCreditForAgent",
        "outputs": [{"name": "drawId", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"name": "agent", "type": "address"}],
        "name": "getAvailableCredit",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "drawId", "type": "uint256"},
            {"indexed": True, "name": "agent", "type": "address"},
            {"indexed": False, "name": "amount", "type": "uint256"},
            {"indexed": True, "name": "escrowJobId", "type": "uint256"},
        ],
        "name": "CreditDrawn",
        "type": "event",
    },
]

SKILL_LISTING_COMPONENTS = [
    {"name": "id", "type": "uint256"},
    {"name": "seller", "type": "address"},
    {"name": "assetType", "type": "uint8"},
    {"name": "deliveryMethod", "type": "uint8"},
    {"name": "pricingModel", "type": "uint8"},
    {"name": "title", "type": "string"},
    {"name": "description", "type": "string"},
    {"name": "metadataURI", "type": "string"},
    {"name": "version", "type": "uint256"},
    {"name": "price", "type": "uint256"},
    {"name": "settlementToken", "type": "address"},
    {"name": "apiEndpointHash", "type": "bytes32"},
    {"name": "packageHash", "type": "bytes32"},
    {"name": "active", "type": "bool"},
    {"name": "totalPurchases", "type": "uint256"},
    {"name": "totalCalls", "type": "uint256"},
    {"name": "createdAt", "type": "uint256"},
    {"name": "updatedAt", "type": "uint256"},
]

SKILL_ACCESS_COMPONENTS = [
    {"name": "id", "type": "uint256"},
    {"name": "skillId", "type": "uint256"},
    {"name": "buyer", "type": "address"},
    {"name": "pricingModel", "type": "uint8"},
    {"name": "purchasedAt", "type": "uint256"},
    {"name": "expiresAt", "type": "uint256"},
    {"name": "callsUsed", "type": "uint256"},
    {"name": "callsLimit", "type": "uint256"},
    {"name": "active", "type": "bool"},
]

SKILL_REGISTRY_ABI = [
    {
        "inputs": [{"name": "skillId", "type": "uint256"}],
        "name": "getSkill",
        "outputs": [{"name": "", "type": "tuple", "components": SKILL_LISTING_COMPONENTS}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "skillId", "type": "uint256"}],
        "name": "purchaseSkill",
        "outputs": [{"name": "accessId", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "buyer", "type": "address"},
            {"name": "skillId", "type": "uint256"},
        ],
        "name": "hasActiveAccess",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "accessId", "type": "uint256"},
            {"name": "calls", "type": "uint256"},
        ],
        "name": "recordUsage",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "buyer", "type": "address"},
            {"name": "skillId", "type": "uint256"},
        ],
        "name": "getAccessByBuyer",
        "outputs": [{"name": "", "type": "tuple", "components": SKILL_ACCESS_COMPONENTS}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "skillId", "type": "uint256"},
            {"indexed": True, "name": "buyer", "type": "address"},
            {"indexed": False, "name": "accessId", "type": "uint256"},
            {"indexed": False, "name": "pricingModel", "type": "uint8"},
            {"indexed": False, "name": "amount", "type": "uint256"},
        ],
        "name": "SkillPurchased",
        "type": "event",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "accessId", "type": "uint256"},
            {"indexed": False, "name": "calls", "type": "uint256"},
            {"indexed": False, "name": "totalCalls", "type": "uint256"},
        ],
        "name": "UsageRecorded",
        "type": "event",
    },
]
